from __future__ import annotations

import uuid
from datetime import datetime

import pytest

from recipe_api import create_app
from recipe_api.models import Recipe, User


class InMemoryRecipeStorage:
    """Simple storage backend used for tests."""

    def __init__(self) -> None:
        self._recipes: list[Recipe] = []
        self.list_calls = 0

    def ping(self) -> None:
        pass

    def list_recipes(self):
        self.list_calls += 1
        return list(self._recipes)

    def get_recipe(self, recipe_id: str) -> Recipe:
        for recipe in self._recipes:
            if recipe.id == recipe_id:
                return recipe
        raise KeyError(recipe_id)

    def add_recipe(self, *, name, instructions, ingredients, tags, published_at) -> Recipe:
        recipe = Recipe(
            id=uuid.uuid4().hex[:20],
            name=name,
            instructions=list(instructions),
            ingredients=list(ingredients),
            tags=list(tags),
            published_at=published_at,
        )
        self._recipes.append(recipe)
        return recipe

    def update_recipe(self, recipe_id: str, *, name, instructions, ingredients, tags) -> None:
        recipe = self.get_recipe(recipe_id)
        recipe.name = name
        recipe.instructions = list(instructions)
        recipe.ingredients = list(ingredients)
        recipe.tags = list(tags)

    def delete_recipe(self, recipe_id: str) -> None:
        for index, recipe in enumerate(self._recipes):
            if recipe.id == recipe_id:
                self._recipes.pop(index)
                return
        raise KeyError(recipe_id)


class InMemoryUserStorage:
    def __init__(self) -> None:
        self.users: dict[str, User] = {}

    def get_user(self, username: str) -> User:
        return self.users[username]

    def add_user(self, *, username: str, password_hash: str) -> User:
        user = User(username=username, password=password_hash)
        self.users[username] = user
        return user


class InMemoryRedis:
    """The subset of the redis client API the application uses."""

    def __init__(self) -> None:
        self.data: dict[str, str] = {}
        self.expiry: dict[str, int] = {}

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value, ex=None):
        self.data[key] = value
        if ex is not None:
            self.expiry[key] = ex
        else:
            self.expiry.pop(key, None)
        return True

    def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
            self.expiry.pop(key, None)
        return removed


@pytest.fixture
def recipe_storage():
    return InMemoryRecipeStorage()


@pytest.fixture
def user_storage():
    return InMemoryUserStorage()


@pytest.fixture
def cache_client():
    return InMemoryRedis()


@pytest.fixture
def app(monkeypatch, recipe_storage, user_storage, cache_client):
    monkeypatch.setenv("BCRYPT_ROUNDS", "4")
    app = create_app(recipes=recipe_storage, users=user_storage, cache_client=cache_client)
    app.config.update(TESTING=True)
    return app


@pytest.fixture
def client(app):
    return app.test_client()


def add_recipe(storage: InMemoryRecipeStorage, name: str = "Chocolate Cake") -> Recipe:
    return storage.add_recipe(
        name=name,
        instructions=["Mix", "Bake"],
        ingredients=["flour", "sugar"],
        tags=["dessert"],
        published_at=datetime(2024, 1, 1, 12, 0),
    )
