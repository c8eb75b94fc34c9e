"""Liked recipes and feedback on top of the key-value store.

Key layout:
- liked_recipe_<normalized recipe name>  -> RecipeRecord (wire shape)
- feedback_<epoch millis>                -> FeedbackRecord (wire shape)
"""

import re
import time
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from src.models.models import FeedbackRecord, FeedbackStats, RecipeRecord
from src.storage.kv_store import KeyValueStore
from src.utils.errors import ValidationError
from src.utils.logger import logger


LIKED_RECIPE_PREFIX = "liked_recipe_"
FEEDBACK_PREFIX = "feedback_"

_NON_ALNUM = re.compile(r"[^a-z0-9]")


def normalize_recipe_key(name: str) -> str:
    """Lowercase the name and replace every character outside [a-z0-9] with '_'."""
    return _NON_ALNUM.sub("_", name.lower())


def liked_recipe_key(name: str) -> str:
    return f"{LIKED_RECIPE_PREFIX}{normalize_recipe_key(name)}"


class LikedRecipes:
    """Liked recipes keyed by normalized name; liking twice overwrites."""

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    def like(self, recipe: RecipeRecord | dict) -> str:
        """Store a recipe, returning its key.

        Raises:
            ValidationError: If the recipe is malformed.
        """
        if isinstance(recipe, dict):
            try:
                recipe = RecipeRecord.model_validate(recipe)
            except PydanticValidationError as e:
                raise ValidationError(f"Invalid recipe: {e.error_count()} validation error(s)") from e

        key = liked_recipe_key(recipe.name)
        self.store.set(key, recipe.to_wire())
        logger.info(f"❤️ Saved liked recipe: {recipe.name} ({key})")
        return key

    def unlike(self, name: str) -> str:
        """Remove the recipe stored under the normalized name, returning its key."""
        key = liked_recipe_key(name)
        self.store.delete(key)
        logger.info(f"💔 Removed liked recipe: {name} ({key})")
        return key

    def is_liked(self, name: str) -> bool:
        return self.store.get(liked_recipe_key(name)) is not None

    def list_all(self) -> list[dict[str, Any]]:
        """All liked recipes, in wire shape."""
        recipes = self.store.get_by_prefix(LIKED_RECIPE_PREFIX)
        logger.debug(f"Found {len(recipes)} liked recipes")
        return recipes


class FeedbackLog:
    """Append-only feedback entries keyed by submission time."""

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store
        self._last_millis = 0

    def _next_key(self) -> str:
        millis = int(time.time() * 1000)
        # Two submissions within the same millisecond must not overwrite each other
        if millis <= self._last_millis:
            millis = self._last_millis + 1
        self._last_millis = millis
        return f"{FEEDBACK_PREFIX}{millis}"

    def submit(self, rating: Optional[int] = None, feedback: str = "", timestamp: Optional[str] = None) -> str:
        """Store a feedback entry, returning its key.

        Raises:
            ValidationError: If neither a rating nor feedback text is given, or
                the values are out of range.
        """
        if rating is None and not (feedback or "").strip():
            raise ValidationError("Please provide a rating or feedback")

        fields: dict[str, Any] = {"rating": rating, "feedback": feedback or ""}
        if timestamp:
            fields["timestamp"] = timestamp
        try:
            record = FeedbackRecord(**fields)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid feedback: {e.errors()[0]['msg']}") from e

        key = self._next_key()
        self.store.set(key, record.to_wire())
        logger.info(f"💬 Saved feedback {key} (rating={record.rating})")
        return key

    def list_all(self) -> list[dict[str, Any]]:
        return self.store.get_by_prefix(FEEDBACK_PREFIX)

    def stats(self) -> FeedbackStats:
        """Total count, average over rated entries and the 1-5 star distribution."""
        entries = self.list_all()
        ratings = [entry["rating"] for entry in entries if entry.get("rating")]
        distribution = [0, 0, 0, 0, 0]
        for rating in ratings:
            distribution[rating - 1] += 1
        average = sum(ratings) / len(ratings) if ratings else 0.0
        return FeedbackStats(total=len(entries), average_rating=average, rating_distribution=distribution)
