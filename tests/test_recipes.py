from __future__ import annotations

import json
from unittest import mock

import pytest
import redis

from conftest import InMemoryRedis, InMemoryRecipeStorage, add_recipe
from recipe_api.cache import RECIPES_KEY, RecipeListCache
from recipe_api.errors import CacheError, NotFoundError, StoreError, ValidationError
from recipe_api.recipes import RecipeService, parse_recipe_id


@pytest.fixture
def redis_client():
    return InMemoryRedis()


@pytest.fixture
def storage():
    return InMemoryRecipeStorage()


@pytest.fixture
def service(storage, redis_client):
    return RecipeService(storage, RecipeListCache(redis_client))


def test_miss_populates_cache_without_expiry(service, storage, redis_client):
    recipe = add_recipe(storage)

    recipes = service.list_recipes()

    assert [item.id for item in recipes] == [recipe.id]
    cached = json.loads(redis_client.data[RECIPES_KEY])
    assert cached[0]["id"] == recipe.id
    assert RECIPES_KEY not in redis_client.expiry


def test_hit_does_not_reach_store(service, storage):
    add_recipe(storage)

    first = service.list_recipes()
    second = service.list_recipes()

    assert first == second
    assert storage.list_calls == 1


def test_empty_collection_is_cached(service, storage):
    assert service.list_recipes() == []
    assert service.list_recipes() == []
    assert storage.list_calls == 1


def test_cache_read_error_is_not_a_miss(service, storage, redis_client):
    with mock.patch.object(redis_client, "get", side_effect=redis.TimeoutError("slow")):
        with pytest.raises(CacheError):
            service.list_recipes()

    assert storage.list_calls == 0


def test_corrupted_cache_entry_raises(service, redis_client):
    redis_client.data[RECIPES_KEY] = "{not json"

    with pytest.raises(CacheError):
        service.list_recipes()


def test_cache_write_failure_still_returns_recipes(service, storage, redis_client):
    add_recipe(storage)

    with mock.patch.object(redis_client, "set", side_effect=redis.ConnectionError("down")):
        recipes = service.list_recipes()

    assert len(recipes) == 1


def test_store_error_on_miss(service, storage):
    with mock.patch.object(storage, "list_recipes", side_effect=RuntimeError("boom")):
        with pytest.raises(StoreError):
            service.list_recipes()


def test_create_invalidates_listing(service, storage):
    service.list_recipes()

    created = service.create_recipe({"name": "Pasta", "ingredients": ["pasta"]})

    assert created.published_at is not None
    assert created.id in [recipe.id for recipe in service.list_recipes()]
    assert storage.list_calls == 2


def test_create_survives_failed_invalidation(service, redis_client):
    with mock.patch.object(redis_client, "delete", side_effect=redis.ConnectionError("down")):
        created = service.create_recipe({"name": "Pasta"})

    assert created.name == "Pasta"


def test_create_store_failure(service, storage):
    with mock.patch.object(storage, "add_recipe", side_effect=RuntimeError("boom")):
        with pytest.raises(StoreError):
            service.create_recipe({"name": "Pasta"})


@pytest.mark.parametrize("body", [None, [], {"name": ""}, {"name": "x", "ingredients": "flour"}])
def test_create_rejects_malformed_body(service, body):
    with pytest.raises(ValidationError):
        service.create_recipe(body)


def test_update_keeps_published_at(service, storage):
    created = service.create_recipe({"name": "Soup", "tags": ["warm"]})

    service.update_recipe(created.id, {"name": "Tomato Soup", "tags": ["warm", "red"]})

    fetched = service.get_recipe(created.id)
    assert fetched.name == "Tomato Soup"
    assert fetched.tags == ["warm", "red"]
    assert fetched.published_at == created.published_at


def test_update_invalidates_listing(service, storage):
    created = service.create_recipe({"name": "Soup"})
    service.list_recipes()

    service.update_recipe(created.id, {"name": "Broth"})

    assert [recipe.name for recipe in service.list_recipes()] == ["Broth"]


def test_delete_invalidates_listing(service, storage, redis_client):
    created = service.create_recipe({"name": "Soup"})
    service.list_recipes()
    assert RECIPES_KEY in redis_client.data

    service.delete_recipe(created.id)

    assert RECIPES_KEY not in redis_client.data
    assert service.list_recipes() == []


def test_get_missing_recipe(service):
    with pytest.raises(NotFoundError):
        service.get_recipe("A" * 20)


def test_delete_missing_recipe(service):
    with pytest.raises(NotFoundError):
        service.delete_recipe("A" * 20)


@pytest.mark.parametrize("recipe_id", ["", "short", "a" * 21, "abc/def/ghi/jkl/mnop", "a" * 19 + "-", "A" * 20 + "\n"])
def test_malformed_ids_are_rejected(recipe_id):
    with pytest.raises(ValidationError):
        parse_recipe_id(recipe_id)


def test_malformed_id_never_reaches_store(service, storage):
    with mock.patch.object(storage, "get_recipe") as get_recipe:
        with pytest.raises(ValidationError):
            service.get_recipe("../etc")

    get_recipe.assert_not_called()
