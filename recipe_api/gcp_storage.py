from __future__ import annotations

import os
from datetime import datetime
from typing import Iterable, List, Optional

from google.api_core import exceptions as gcloud_exceptions
from google.cloud import firestore

from .models import Recipe, User
from .storage import RecipeRepository, UserRepository


DEFAULT_TIMEOUT = 10.0


def _timeout_from_env() -> float:
    return float(os.environ.get("FIRESTORE_TIMEOUT", DEFAULT_TIMEOUT))


class FirestoreRecipeStorage(RecipeRepository):
    """GCP backed recipe storage using Firestore.

    Every call carries an explicit deadline and automatic retries are turned
    off so that failures reach the caller immediately.
    """

    def __init__(
        self,
        *,
        client: Optional[firestore.Client] = None,
        project: Optional[str] = None,
        collection_name: str = "recipes",
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._collection_name = collection_name
        self._timeout = timeout

        self._firestore_client = client or firestore.Client(project=project)
        self._collection = self._firestore_client.collection(collection_name)

    @classmethod
    def from_env(cls, client: Optional[firestore.Client] = None) -> "FirestoreRecipeStorage":
        """Build a storage instance from environment variables."""

        project = os.environ.get("GCP_PROJECT")
        collection_name = os.environ.get("RECIPES_COLLECTION", "recipes")
        return cls(
            client=client,
            project=project,
            collection_name=collection_name,
            timeout=_timeout_from_env(),
        )

    def ping(self) -> None:
        list(self._collection.limit(1).stream(retry=None, timeout=self._timeout))

    def list_recipes(self) -> Iterable[Recipe]:
        docs = self._collection.stream(retry=None, timeout=self._timeout)
        for doc in docs:
            data = doc.to_dict() or {}
            yield self._doc_to_recipe(doc.id, data)

    def get_recipe(self, recipe_id: str) -> Recipe:
        snapshot = self._collection.document(recipe_id).get(retry=None, timeout=self._timeout)

        if not snapshot.exists:
            raise KeyError(f"Recipe '{recipe_id}' does not exist.")

        data = snapshot.to_dict() or {}
        return self._doc_to_recipe(snapshot.id, data)

    def add_recipe(
        self,
        *,
        name: str,
        instructions: List[str],
        ingredients: List[str],
        tags: List[str],
        published_at: datetime,
    ) -> Recipe:
        doc = {
            "name": name,
            "instructions": instructions,
            "ingredients": ingredients,
            "tags": tags,
            "published_at": published_at,
        }

        doc_ref = self._collection.document()
        doc_ref.set(doc, retry=None, timeout=self._timeout)

        return Recipe(id=doc_ref.id, **doc)

    def update_recipe(
        self,
        recipe_id: str,
        *,
        name: str,
        instructions: List[str],
        ingredients: List[str],
        tags: List[str],
    ) -> None:
        update_doc = {
            "name": name,
            "instructions": instructions,
            "ingredients": ingredients,
            "tags": tags,
        }

        doc_ref = self._collection.document(recipe_id)
        try:
            doc_ref.update(update_doc, retry=None, timeout=self._timeout)
        except gcloud_exceptions.NotFound as exc:
            raise KeyError(f"Recipe '{recipe_id}' does not exist.") from exc

    def delete_recipe(self, recipe_id: str) -> None:
        doc_ref = self._collection.document(recipe_id)
        snapshot = doc_ref.get(retry=None, timeout=self._timeout)

        if not snapshot.exists:
            raise KeyError(f"Recipe '{recipe_id}' does not exist.")

        doc_ref.delete(retry=None, timeout=self._timeout)

    def _doc_to_recipe(self, doc_id: str, data: dict) -> Recipe:
        published_at = data.get("published_at")
        if not isinstance(published_at, datetime):
            published_at = None

        return Recipe(
            id=doc_id,
            name=data.get("name", ""),
            instructions=list(data.get("instructions") or []),
            ingredients=list(data.get("ingredients") or []),
            tags=list(data.get("tags") or []),
            published_at=published_at,
        )


class FirestoreUserStorage(UserRepository):
    """User accounts kept in their own Firestore collection."""

    def __init__(
        self,
        *,
        client: Optional[firestore.Client] = None,
        project: Optional[str] = None,
        collection_name: str = "users",
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._timeout = timeout
        self._firestore_client = client or firestore.Client(project=project)
        self._collection = self._firestore_client.collection(collection_name)

    @classmethod
    def from_env(cls, client: Optional[firestore.Client] = None) -> "FirestoreUserStorage":
        project = os.environ.get("GCP_PROJECT")
        collection_name = os.environ.get("USERS_COLLECTION", "users")
        return cls(
            client=client,
            project=project,
            collection_name=collection_name,
            timeout=_timeout_from_env(),
        )

    def get_user(self, username: str) -> User:
        query = self._collection.where(
            filter=firestore.FieldFilter("username", "==", username)
        ).limit(1)

        for doc in query.stream(retry=None, timeout=self._timeout):
            data = doc.to_dict() or {}
            return User(username=data.get("username", ""), password=data.get("password", ""))

        raise KeyError(f"User '{username}' does not exist.")

    def add_user(self, *, username: str, password_hash: str) -> User:
        doc_ref = self._collection.document()
        doc_ref.set(
            {"username": username, "password": password_hash},
            retry=None,
            timeout=self._timeout,
        )
        return User(username=username, password=password_hash)


__all__ = ["FirestoreRecipeStorage", "FirestoreUserStorage"]
