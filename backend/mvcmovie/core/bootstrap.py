# mvcmovie/core/bootstrap.py
"""
Bootstrap module for application initialization.
Handles one-time startup seeding: the movie catalogue and the default roles.
Both steps are idempotent; re-running startup against a seeded store changes nothing.
"""
import datetime as dt
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from mvcmovie.core.authorization import ADMINISTRATOR_ROLE, CUSTOMER_ROLE
from mvcmovie.identity.managers import RoleManager
from mvcmovie.identity.results import IdentityError
from mvcmovie.models.movie import Movie

logger = logging.getLogger(__name__)

DEFAULT_ROLE_NAMES = (ADMINISTRATOR_ROLE, CUSTOMER_ROLE)

SEED_MOVIES = (
    {"title": "When Harry Met Sally", "release_date": dt.date(1989, 1, 11),
     "genre": "Romantic Comedy", "rating": "R", "price": Decimal("7.99")},
    {"title": "Ghostbusters", "release_date": dt.date(1984, 3, 13),
     "genre": "Comedy", "rating": "R", "price": Decimal("8.99")},
    {"title": "Ghostbusters 2", "release_date": dt.date(1986, 2, 23),
     "genre": "Comedy", "rating": "R", "price": Decimal("9.99")},
    {"title": "Rio Bravo", "release_date": dt.date(1959, 4, 15),
     "genre": "Western", "rating": "R", "price": Decimal("3.99")},
)


class RoleSeedingError(RuntimeError):
    """A role could not be checked or created; the remaining roles were not attempted."""

    def __init__(self, role_name: str, errors: tuple[IdentityError, ...] = ()):
        self.role_name = role_name
        self.errors = errors
        detail = ", ".join(e.code for e in errors)
        super().__init__(f"Failed to seed role {role_name!r}" + (f": {detail}" if detail else ""))


@dataclass(frozen=True)
class RoleSeedOutcome:
    name: str
    created: bool


async def seed_movies() -> int:
    """
    Insert the sample catalogue when the movies table is empty.
    Returns the number of movies created (0 when any movie already exists).
    """
    if await Movie.all().exists():
        return 0  # DB has been seeded
    for movie in SEED_MOVIES:
        await Movie.create(**movie)
    logger.info("[bootstrap] seeded %d movies", len(SEED_MOVIES))
    return len(SEED_MOVIES)


async def create_roles(
    role_manager: RoleManager, role_names: Iterable[str] = DEFAULT_ROLE_NAMES
) -> list[RoleSeedOutcome]:
    """
    Ensure every role in ``role_names`` exists, in order.

    Each existence check and creation is awaited before the next role is looked
    at. The first failure raises RoleSeedingError and the rest are skipped.
    """
    outcomes: list[RoleSeedOutcome] = []
    for role_name in role_names:
        try:
            # If we already have this role, skip it
            if await role_manager.role_exists(role_name):
                outcomes.append(RoleSeedOutcome(role_name, created=False))
                continue
            result = await role_manager.create(role_name)
        except Exception as exc:
            logger.error("[bootstrap] role %s could not be seeded: %s", role_name, exc)
            raise RoleSeedingError(role_name) from exc
        if not result.succeeded:
            logger.error("[bootstrap] role %s could not be seeded: %s", role_name, result)
            raise RoleSeedingError(role_name, result.errors)
        logger.warning("[bootstrap] Created role -> %s", role_name)
        outcomes.append(RoleSeedOutcome(role_name, created=True))
    return outcomes
