import logging
import os
from typing import Optional

import redis
from flask import Flask, Response, jsonify, request, session
from werkzeug.exceptions import HTTPException

from .auth import DEFAULT_ROUNDS, DEFAULT_SESSION_TTL, AuthService, SessionRegistry, login_required
from .cache import RecipeListCache, redis_from_env
from .errors import RecipeAPIError
from .logging_config import setup_logging
from .models import Recipe
from .recipes import RecipeService
from .storage import RecipeRepository, UserRepository

try:
    from .gcp_storage import FirestoreRecipeStorage, FirestoreUserStorage
except ImportError:  # pragma: no cover - allows running tests without optional deps
    FirestoreRecipeStorage = None  # type: ignore[assignment]
    FirestoreUserStorage = None  # type: ignore[assignment]

logger = logging.getLogger(__name__)


def create_app(
    recipes: Optional[RecipeRepository] = None,
    users: Optional[UserRepository] = None,
    cache_client: Optional[redis.Redis] = None,
) -> Flask:
    """Create and configure the Flask application.

    Parameters
    ----------
    recipes, users:
        Optional repositories. When ``None`` the application will use the
        Firestore implementations configured through environment variables,
        and refuses to start if Firestore cannot be reached.
    cache_client:
        Optional Redis client used for the recipe list cache and the session
        registry. When ``None`` one is built from environment variables.
    """

    setup_logging(os.environ.get("LOG_LEVEL", "INFO"))

    app = Flask(__name__)
    app.secret_key = os.environ.get("SESSION_SECRET", "development-secret-change-me")
    app.config.setdefault("BCRYPT_ROUNDS", int(os.environ.get("BCRYPT_ROUNDS", DEFAULT_ROUNDS)))
    app.config.setdefault("SESSION_TTL", int(os.environ.get("SESSION_TTL", DEFAULT_SESSION_TTL)))

    if recipes is None or users is None:
        if FirestoreRecipeStorage is None:
            raise RuntimeError(
                "google-cloud-firestore is not installed. Install it or pass "
                "explicit storage backends to create_app."
            )
        if recipes is None:
            recipes = FirestoreRecipeStorage.from_env()
            recipes.ping()
            logger.info("Connected to Firestore")
        if users is None:
            users = FirestoreUserStorage.from_env()

    if cache_client is None:
        cache_client = redis_from_env()

    app.config["RECIPE_SERVICE"] = RecipeService(recipes, RecipeListCache(cache_client))
    app.config["AUTH_SERVICE"] = AuthService(
        users,
        SessionRegistry(cache_client, ttl=app.config["SESSION_TTL"]),
        rounds=app.config["BCRYPT_ROUNDS"],
    )

    @app.errorhandler(RecipeAPIError)
    def handle_api_error(error: RecipeAPIError) -> tuple[Response, int]:
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error: HTTPException) -> tuple[Response, int]:
        return jsonify({"error": error.description}), error.code

    @app.post("/signup")
    def sign_up() -> Response:
        app.config["AUTH_SERVICE"].sign_up(request.get_json(silent=True))
        return jsonify({"message": "User created"})

    @app.post("/signin")
    def sign_in() -> Response:
        app.config["AUTH_SERVICE"].sign_in(request.get_json(silent=True), session)
        return jsonify({"message": "Signed in"})

    @app.post("/signout")
    def sign_out() -> Response:
        app.config["AUTH_SERVICE"].sign_out(session)
        return jsonify({"message": "Signed out"})

    @app.get("/recipes")
    def list_recipes() -> Response:
        recipe_service: RecipeService = app.config["RECIPE_SERVICE"]
        return jsonify([recipe.to_dict() for recipe in recipe_service.list_recipes()])

    @app.get("/recipes/<recipe_id>")
    @login_required
    def get_recipe(recipe_id: str) -> Response:
        recipe_service: RecipeService = app.config["RECIPE_SERVICE"]
        return jsonify(recipe_service.get_recipe(recipe_id).to_dict())

    @app.post("/recipes")
    @login_required
    def create_recipe() -> Response:
        recipe_service: RecipeService = app.config["RECIPE_SERVICE"]
        recipe = recipe_service.create_recipe(request.get_json(silent=True))
        return jsonify(recipe.to_dict())

    @app.put("/recipes/<recipe_id>")
    @login_required
    def update_recipe(recipe_id: str) -> Response:
        recipe_service: RecipeService = app.config["RECIPE_SERVICE"]
        recipe_service.update_recipe(recipe_id, request.get_json(silent=True))
        return jsonify({"message": "Recipe has been updated"})

    @app.delete("/recipes/<recipe_id>")
    @login_required
    def delete_recipe(recipe_id: str) -> Response:
        recipe_service: RecipeService = app.config["RECIPE_SERVICE"]
        recipe_service.delete_recipe(recipe_id)
        return jsonify({"message": "Recipe has been deleted"})

    return app


__all__ = ["create_app", "Recipe"]
