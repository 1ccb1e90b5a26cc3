"""
Recipe business logic.

Listing goes through a read-through cache: a miss queries the store and
repopulates the cached list, a hit is served without touching the store.
Every successful create, update and delete drops the cached list so the next
listing is fetched fresh. Invalidation is best-effort and never fails the
mutation that triggered it.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Any, List

from .cache import RecipeListCache
from .errors import CacheError, NotFoundError, StoreError, ValidationError
from .models import Recipe
from .schemas import RecipePayload, parse_payload
from .storage import RecipeRepository

logger = logging.getLogger(__name__)

# Firestore auto-generated document ids.
RECIPE_ID_PATTERN = re.compile(r"[A-Za-z0-9]{20}")


def parse_recipe_id(recipe_id: str) -> str:
    if not isinstance(recipe_id, str) or not RECIPE_ID_PATTERN.fullmatch(recipe_id):
        raise ValidationError(f"Invalid recipe id '{recipe_id}'")
    return recipe_id


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RecipeService:
    """CRUD over the recipe repository with a cached full listing."""

    def __init__(self, repository: RecipeRepository, cache: RecipeListCache) -> None:
        self._repository = repository
        self._cache = cache

    def list_recipes(self) -> List[Recipe]:
        cached = self._cache.get()
        if cached is not None:
            logger.info("Request to Redis")
            return cached

        logger.info("Request to Firestore")
        try:
            recipes = list(self._repository.list_recipes())
        except Exception as exc:
            logger.exception("Failed to list recipes")
            raise StoreError("Error while listing recipes") from exc

        try:
            self._cache.set(recipes)
        except CacheError:
            logger.warning("Could not populate recipe cache", exc_info=True)

        return recipes

    def get_recipe(self, recipe_id: str) -> Recipe:
        recipe_id = parse_recipe_id(recipe_id)
        try:
            return self._repository.get_recipe(recipe_id)
        except KeyError as exc:
            raise NotFoundError(f"Recipe '{recipe_id}' not found") from exc
        except Exception as exc:
            logger.exception("Failed to fetch recipe %s", recipe_id)
            raise StoreError("Error while fetching the recipe") from exc

    def create_recipe(self, data: Any) -> Recipe:
        payload = parse_payload(RecipePayload, data)
        try:
            recipe = self._repository.add_recipe(
                name=payload.name,
                instructions=payload.instructions,
                ingredients=payload.ingredients,
                tags=payload.tags,
                published_at=_utc_now(),
            )
        except Exception as exc:
            logger.exception("Failed to insert recipe")
            raise StoreError("Error while inserting a new recipe") from exc

        logger.info("Created recipe %s", recipe.id)
        self._invalidate()
        return recipe

    def update_recipe(self, recipe_id: str, data: Any) -> None:
        payload = parse_payload(RecipePayload, data)
        recipe_id = parse_recipe_id(recipe_id)
        try:
            self._repository.update_recipe(
                recipe_id,
                name=payload.name,
                instructions=payload.instructions,
                ingredients=payload.ingredients,
                tags=payload.tags,
            )
        except KeyError as exc:
            raise NotFoundError(f"Recipe '{recipe_id}' not found") from exc
        except Exception as exc:
            logger.exception("Failed to update recipe %s", recipe_id)
            raise StoreError("Error while updating the recipe") from exc

        logger.info("Updated recipe %s", recipe_id)
        self._invalidate()

    def delete_recipe(self, recipe_id: str) -> None:
        recipe_id = parse_recipe_id(recipe_id)
        try:
            self._repository.delete_recipe(recipe_id)
        except KeyError as exc:
            raise NotFoundError(f"Recipe '{recipe_id}' not found") from exc
        except Exception as exc:
            logger.exception("Failed to delete recipe %s", recipe_id)
            raise StoreError("Error while deleting the recipe") from exc

        logger.info("Deleted recipe %s", recipe_id)
        self._invalidate()

    def _invalidate(self) -> None:
        logger.info("Remove data from Redis")
        try:
            self._cache.invalidate()
        except CacheError:
            logger.warning("Could not invalidate recipe cache", exc_info=True)


__all__ = ["RECIPE_ID_PATTERN", "RecipeService", "parse_recipe_id"]
