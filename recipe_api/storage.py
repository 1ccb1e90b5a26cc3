from __future__ import annotations

from datetime import datetime
from typing import Iterable, List, Protocol

from .models import Recipe, User


class RecipeRepository(Protocol):
    """Protocol describing the behaviour required by the recipe service."""

    def ping(self) -> None:
        """Raise if the backing store cannot be reached."""

    def list_recipes(self) -> Iterable[Recipe]:
        """Return an iterable over every stored recipe."""

    def get_recipe(self, recipe_id: str) -> Recipe:
        """Return a single recipe or raise :class:`KeyError` if missing."""

    def add_recipe(
        self,
        *,
        name: str,
        instructions: List[str],
        ingredients: List[str],
        tags: List[str],
        published_at: datetime,
    ) -> Recipe:
        """Persist a new recipe and return it with its assigned id."""

    def update_recipe(
        self,
        recipe_id: str,
        *,
        name: str,
        instructions: List[str],
        ingredients: List[str],
        tags: List[str],
    ) -> None:
        """Replace the editable fields of a recipe or raise :class:`KeyError`."""

    def delete_recipe(self, recipe_id: str) -> None:
        """Remove a recipe or raise :class:`KeyError` if missing."""


class UserRepository(Protocol):
    """Protocol describing the behaviour required by the auth service."""

    def get_user(self, username: str) -> User:
        """Return the user called ``username`` or raise :class:`KeyError`."""

    def add_user(self, *, username: str, password_hash: str) -> User:
        """Persist a new user document."""


__all__ = ["RecipeRepository", "UserRepository"]
