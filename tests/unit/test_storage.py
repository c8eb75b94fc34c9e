"""Unit tests for the key-value stores and the repositories on top of them."""

from unittest.mock import patch

import pytest

from helpers import recipe_dict
from src.storage.kv_store import InMemoryKVStore, SqlKVStore
from src.storage.repositories import (
    FeedbackLog,
    LikedRecipes,
    liked_recipe_key,
    normalize_recipe_key,
)
from src.utils.errors import ValidationError


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    """Every store implementation must behave the same."""
    if request.param == "memory":
        return InMemoryKVStore()
    return SqlKVStore(f"sqlite:///{tmp_path}/nested/store.db")


def liked(name: str, recipe_id: int = 1) -> dict:
    return {**recipe_dict(name), "id": recipe_id, "gradient": "linear-gradient(red, blue)"}


class TestKeyValueStore:
    def test_get_missing_returns_none(self, store):
        """Test that a missing key reads as None."""
        assert store.get("nope") is None

    def test_set_get_and_overwrite(self, store):
        """Test that set() overwrites an existing key."""
        store.set("k", {"v": 1})
        store.set("k", {"v": 2})

        assert store.get("k") == {"v": 2}

    def test_delete(self, store):
        """Test that delete() removes a key and tolerates a missing one."""
        store.set("k", {"v": 1})

        store.delete("k")
        store.delete("k")

        assert store.get("k") is None

    def test_get_by_prefix(self, store):
        """Test that prefix scans return values in key order."""
        store.set("feedback_2", {"n": 2})
        store.set("feedback_1", {"n": 1})
        store.set("liked_recipe_x", {"n": 3})

        assert store.get_by_prefix("feedback_") == [{"n": 1}, {"n": 2}]

    def test_prefix_underscore_is_literal(self, store):
        """Test that "_" in a prefix is not a wildcard."""
        store.set("liked_recipe_a", {"n": 1})
        store.set("likedXrecipe_b", {"n": 2})

        assert store.get_by_prefix("liked_recipe_") == [{"n": 1}]


class TestKeyNormalization:
    def test_normalize_recipe_key(self):
        """Test recipe name normalization."""
        assert normalize_recipe_key("Chicken Rice Bowl") == "chicken_rice_bowl"
        assert normalize_recipe_key("Mom's Pad-Thai!") == "mom_s_pad_thai_"

    def test_liked_recipe_key(self):
        """Test the liked recipe key layout."""
        assert liked_recipe_key("Chicken Rice Bowl") == "liked_recipe_chicken_rice_bowl"


class TestLikedRecipes:
    """Liked recipe persistence."""

    def test_like_and_list(self, store):
        """Test liking a recipe and listing it back."""
        repo = LikedRecipes(store)

        key = repo.like(liked("Chicken Rice Bowl"))

        assert key == "liked_recipe_chicken_rice_bowl"
        recipes = repo.list_all()
        assert len(recipes) == 1
        assert recipes[0]["name"] == "Chicken Rice Bowl"
        assert recipes[0]["prepTime"] == "10 min"

    def test_like_twice_keeps_one_entry(self, store):
        """Test that liking twice keeps one entry with the latest data."""
        repo = LikedRecipes(store)

        repo.like(liked("Chicken Rice Bowl", recipe_id=1))
        repo.like(liked("Chicken Rice Bowl", recipe_id=4))

        recipes = repo.list_all()
        assert len(recipes) == 1
        assert recipes[0]["id"] == 4

    def test_unlike_removes_only_that_recipe(self, store):
        """Test that unliking leaves other liked recipes alone."""
        repo = LikedRecipes(store)
        repo.like(liked("Chicken Rice Bowl"))
        repo.like(liked("Veggie Curry", recipe_id=2))

        key = repo.unlike("Chicken Rice Bowl")

        assert key == "liked_recipe_chicken_rice_bowl"
        assert not repo.is_liked("Chicken Rice Bowl")
        assert repo.is_liked("Veggie Curry")
        assert [r["name"] for r in repo.list_all()] == ["Veggie Curry"]

    def test_invalid_recipe_rejected(self, store):
        """Test that a malformed recipe is rejected."""
        with pytest.raises(ValidationError):
            LikedRecipes(store).like({"name": "No details"})


class TestFeedbackLog:
    """Feedback submission and aggregation."""

    def test_submit_and_list(self, store):
        """Test submitting feedback and listing it back."""
        log = FeedbackLog(store)

        key = log.submit(rating=5, feedback="Loved it", timestamp="2024-05-01T10:00:00.000Z")

        assert key.startswith("feedback_")
        assert log.list_all() == [{"rating": 5, "feedback": "Loved it", "timestamp": "2024-05-01T10:00:00.000Z"}]

    @patch("src.storage.repositories.time.time", return_value=1_700_000_000.0)
    def test_same_millisecond_submissions_do_not_collide(self, mock_time, store):
        """Test that two submissions in one millisecond get distinct keys."""
        log = FeedbackLog(store)

        first = log.submit(rating=4)
        second = log.submit(rating=2)

        assert first != second
        assert len(log.list_all()) == 2

    def test_requires_rating_or_text(self, store):
        """Test that feedback needs a rating or text."""
        with pytest.raises(ValidationError):
            FeedbackLog(store).submit(rating=None, feedback="   ")

    def test_text_only_feedback_allowed(self, store):
        """Test that text-only feedback is accepted."""
        log = FeedbackLog(store)

        log.submit(feedback="More vegan options please")

        assert log.list_all()[0]["rating"] is None

    @pytest.mark.parametrize("rating", [0, 6])
    def test_rating_out_of_range(self, store, rating):
        """Test that ratings outside 1-5 are rejected."""
        with pytest.raises(ValidationError):
            FeedbackLog(store).submit(rating=rating)

    def test_stats(self, store):
        """Test total, average over rated entries and distribution."""
        log = FeedbackLog(store)
        log.submit(rating=5)
        log.submit(rating=4)
        log.submit(rating=5)
        log.submit(feedback="no stars")

        stats = log.stats()

        assert stats.total == 4
        assert stats.average_rating == pytest.approx(14 / 3)
        assert stats.rating_distribution == [0, 0, 0, 1, 2]

    def test_stats_empty(self, store):
        """Test stats with no feedback."""
        stats = FeedbackLog(store).stats()

        assert stats.total == 0
        assert stats.average_rating == 0.0
        assert stats.rating_distribution == [0, 0, 0, 0, 0]
