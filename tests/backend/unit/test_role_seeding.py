"""
Unit tests for core.bootstrap role and movie seeding.
Role seeding is sequential: each check/create completes before the next role starts.
"""
import datetime as dt
from decimal import Decimal

import pytest

from mvcmovie.core.bootstrap import (
    DEFAULT_ROLE_NAMES,
    SEED_MOVIES,
    RoleSeedingError,
    RoleSeedOutcome,
    create_roles,
    seed_movies,
)
from mvcmovie.identity.managers import RoleManager
from mvcmovie.identity.results import IdentityError, IdentityResult
from mvcmovie.models.movie import Movie
from mvcmovie.models.user import Role

pytestmark = pytest.mark.asyncio


class FakeRoleManager:
    """Records every call; optionally raises or fails on a given role."""

    def __init__(self, existing=(), raise_on=None, fail_on=None):
        self.roles = set(existing)
        self.calls = []
        self.raise_on = raise_on
        self.fail_on = fail_on
        self.in_flight = 0

    async def role_exists(self, name):
        assert self.in_flight == 0, "operations overlapped"
        self.calls.append(("exists", name))
        return name in self.roles

    async def create(self, name):
        assert self.in_flight == 0, "operations overlapped"
        self.in_flight += 1
        try:
            self.calls.append(("create", name))
            if name == self.raise_on:
                raise ConnectionError("store unavailable")
            if name == self.fail_on:
                return IdentityResult.failed(IdentityError("InvalidRoleName", "rejected"))
            self.roles.add(name)
            return IdentityResult.success()
        finally:
            self.in_flight -= 1


async def test_default_roles_are_created_in_order():
    manager = FakeRoleManager()
    outcomes = await create_roles(manager, DEFAULT_ROLE_NAMES)

    assert manager.calls == [
        ("exists", "Administrator"),
        ("create", "Administrator"),
        ("exists", "Customer"),
        ("create", "Customer"),
    ]
    assert outcomes == [RoleSeedOutcome("Administrator", True), RoleSeedOutcome("Customer", True)]


async def test_existing_roles_are_left_alone():
    manager = FakeRoleManager(existing={"Administrator"})
    outcomes = await create_roles(manager, DEFAULT_ROLE_NAMES)

    assert ("create", "Administrator") not in manager.calls
    assert outcomes == [RoleSeedOutcome("Administrator", False), RoleSeedOutcome("Customer", True)]


async def test_second_run_creates_nothing():
    manager = FakeRoleManager()
    await create_roles(manager, DEFAULT_ROLE_NAMES)
    manager.calls.clear()

    outcomes = await create_roles(manager, DEFAULT_ROLE_NAMES)

    assert [c for c in manager.calls if c[0] == "create"] == []
    assert all(not o.created for o in outcomes)


async def test_store_error_aborts_remaining_roles():
    manager = FakeRoleManager(raise_on="Administrator")

    with pytest.raises(RoleSeedingError) as excinfo:
        await create_roles(manager, DEFAULT_ROLE_NAMES)

    assert excinfo.value.role_name == "Administrator"
    assert isinstance(excinfo.value.__cause__, ConnectionError)
    assert ("exists", "Customer") not in manager.calls


async def test_failed_result_aborts_with_errors():
    manager = FakeRoleManager(fail_on="Customer")

    with pytest.raises(RoleSeedingError) as excinfo:
        await create_roles(manager, DEFAULT_ROLE_NAMES)

    assert excinfo.value.role_name == "Customer"
    assert [e.code for e in excinfo.value.errors] == ["InvalidRoleName"]
    assert "Administrator" in manager.roles


async def test_roles_are_created_once_in_the_store(db):
    await create_roles(RoleManager(), DEFAULT_ROLE_NAMES)
    outcomes = await create_roles(RoleManager(), DEFAULT_ROLE_NAMES)

    assert sorted(await Role.all().values_list("name", flat=True)) == ["Administrator", "Customer"]
    assert [o.created for o in outcomes] == [False, False]


async def test_movies_are_seeded_only_into_an_empty_store(db):
    assert await seed_movies() == len(SEED_MOVIES)
    assert await seed_movies() == 0
    titles = await Movie.all().values_list("title", flat=True)
    assert list(titles) == ["Ghostbusters", "Ghostbusters 2", "Rio Bravo", "When Harry Met Sally"]


async def test_movies_are_not_seeded_when_any_movie_exists(db):
    await Movie.create(title="Casablanca", release_date=dt.date(1942, 11, 26), genre="Drama",
                       price=Decimal("4.99"))
    assert await seed_movies() == 0
    assert await Movie.all().count() == 1
