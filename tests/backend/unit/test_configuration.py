"""
Unit tests for the layered configuration loader.
Tests source precedence, optional files, key mapping and the read-only snapshot.
"""
import json

import pytest

from mvcmovie.config import (
    Configuration,
    ConfigurationBuilder,
    ConfigurationError,
    EnvironmentKind,
    HostingEnvironment,
    build_configuration,
)


def write_json(path, data) -> None:
    path.write_text(json.dumps(data), encoding="utf-8")


class TestPrecedence:
    """Later sources override earlier ones, key by key."""

    def test_highest_precedence_source_wins(self, tmp_path):
        write_json(tmp_path / "appsettings.json", {"A": "base", "B": "base", "C": "base", "D": "base"})
        write_json(tmp_path / "appsettings.Development.json", {"B": "env", "C": "env", "D": "env"})
        (tmp_path / "secrets.env").write_text("C=secret\nD=secret\n", encoding="utf-8")

        config = build_configuration(
            HostingEnvironment("Development", tmp_path),
            environ={"D": "variable"},
            user_secrets_path=tmp_path / "secrets.env",
        )

        assert config["A"] == "base"
        assert config["B"] == "env"
        assert config["C"] == "secret"
        assert config["D"] == "variable"

    def test_user_secrets_only_in_development(self, tmp_path):
        (tmp_path / "secrets.env").write_text("Authentication__Google__ClientSecret=s3cret\n")
        secrets = tmp_path / "secrets.env"

        dev = build_configuration(HostingEnvironment("Development", tmp_path), environ={},
                                  user_secrets_path=secrets)
        prod = build_configuration(HostingEnvironment("Production", tmp_path), environ={},
                                   user_secrets_path=secrets)

        assert dev["Authentication:Google:ClientSecret"] == "s3cret"
        assert "Authentication:Google:ClientSecret" not in prod

    def test_environment_file_follows_environment_name(self, tmp_path):
        write_json(tmp_path / "appsettings.json", {"Greeting": "base"})
        write_json(tmp_path / "appsettings.Staging.json", {"Greeting": "staging"})

        staging = build_configuration(HostingEnvironment("Staging", tmp_path), environ={})
        production = build_configuration(HostingEnvironment("Production", tmp_path), environ={})

        assert staging["Greeting"] == "staging"
        assert production["Greeting"] == "base"

    def test_double_underscore_variables_override_nested_keys(self, tmp_path):
        write_json(tmp_path / "appsettings.json",
                   {"ConnectionStrings": {"DefaultConnection": "sqlite://file.db"}})

        config = build_configuration(
            HostingEnvironment("Production", tmp_path),
            environ={"ConnectionStrings__DefaultConnection": "postgres://db/movies"},
        )

        assert config.get_connection_string("DefaultConnection") == "postgres://db/movies"

    def test_override_differing_only_in_case(self, tmp_path):
        write_json(tmp_path / "appsettings.json", {"Logging": {"LogLevel": {"Default": "Information"}}})

        config = build_configuration(HostingEnvironment("Production", tmp_path),
                                     environ={"LOGGING__LOGLEVEL__DEFAULT": "Warning"})

        assert config["logging:loglevel:default"] == "Warning"
        assert len(config) == 1


class TestOptionalSources:
    def test_missing_files_contribute_nothing(self, tmp_path):
        config = build_configuration(HostingEnvironment("Development", tmp_path), environ={},
                                     user_secrets_path=tmp_path / "missing.env")
        assert len(config) == 0

    def test_malformed_json_is_fatal(self, tmp_path):
        (tmp_path / "appsettings.json").write_text("{not json", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            build_configuration(HostingEnvironment("Production", tmp_path), environ={})

    def test_top_level_must_be_an_object(self, tmp_path):
        write_json(tmp_path / "appsettings.Production.json", [1, 2, 3])
        with pytest.raises(ConfigurationError):
            build_configuration(HostingEnvironment("Production", tmp_path), environ={})

    def test_required_file_must_exist(self, tmp_path):
        builder = ConfigurationBuilder(tmp_path).add_json_file("required.json", optional=False)
        with pytest.raises(ConfigurationError):
            builder.build()


class TestConfigurationSnapshot:
    def test_is_read_only(self):
        config = Configuration({"A": "1"})
        with pytest.raises(TypeError):
            config["A"] = "2"

    def test_later_changes_to_the_environment_are_not_seen(self, tmp_path):
        environ = {"Feature": "on"}
        config = build_configuration(HostingEnvironment("Production", tmp_path), environ=environ)
        environ["Feature"] = "off"
        assert config["Feature"] == "on"

    def test_keys_are_case_insensitive(self):
        config = Configuration({"ConnectionStrings:DefaultConnection": "sqlite://x.db"})
        assert config["connectionstrings:defaultconnection"] == "sqlite://x.db"
        assert config.get_connection_string("defaultConnection") == "sqlite://x.db"
        assert config.get_connection_string("Other") is None

    def test_get_section_strips_prefix(self):
        config = ConfigurationBuilder().add_in_memory(
            {"Logging": {"LogLevel": {"Default": "Warning", "tortoise": "Error"}}, "Other": "x"}
        ).build()

        section = config.get_section("logging")

        assert dict(section) == {"LogLevel:Default": "Warning", "LogLevel:tortoise": "Error"}
        assert len(config.get_section("Missing")) == 0

    def test_json_scalars_become_strings(self):
        config = ConfigurationBuilder().add_in_memory(
            {"Flag": True, "Count": 3, "Nothing": None, "Hosts": ["a", "b"]}
        ).build()

        assert config["Flag"] == "true"
        assert config["Count"] == "3"
        assert config["Nothing"] == ""
        assert config["Hosts:1"] == "b"

    def test_typed_getters(self):
        config = Configuration({"Enabled": "True", "Port": "44321", "Bad": "many"})

        assert config.get_bool("Enabled") is True
        assert config.get_bool("Missing", default=True) is True
        assert config.get_int("Port", 0) == 44321
        assert config.get_int("Missing", 5) == 5
        with pytest.raises(ConfigurationError):
            config.get_int("Bad", 0)


class TestHostingEnvironment:
    def test_development_is_case_insensitive(self, tmp_path):
        assert HostingEnvironment("development", tmp_path).is_development
        assert HostingEnvironment("DEVELOPMENT", tmp_path).kind is EnvironmentKind.DEVELOPMENT

    def test_other_names_are_treated_as_production(self, tmp_path):
        assert HostingEnvironment("Staging", tmp_path).kind is EnvironmentKind.PRODUCTION

    def test_from_environ(self, tmp_path):
        env = HostingEnvironment.from_environ(
            {"MVCMOVIE_ENVIRONMENT": "Development", "MVCMOVIE_CONTENTROOT": str(tmp_path)}
        )
        assert env.is_development
        assert env.web_root == tmp_path / "wwwroot"
        assert HostingEnvironment.from_environ({}).name == "Production"
