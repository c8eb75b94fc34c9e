"""Data models and schemas for recipe stream service.

Defines Pydantic models for request validation, model output validation,
stream events and persisted records.
All models use Pydantic v2 and camelCase aliases matching the wire format.
"""

from datetime import datetime, timezone
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Base model: snake_case attributes, camelCase on the wire."""

    model_config = ConfigDict(
        str_strip_whitespace=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_wire(self) -> dict:
        """Dump to a JSON-compatible dict using wire (camelCase) names."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=False)


class GenerationRequest(WireModel):
    """Request schema for a streaming recipe generation.

    Blank ingredient entries are dropped; at least one must remain.
    Dietary restrictions behave as a set (duplicates removed, first spelling kept).
    """

    ingredients: Annotated[
        List[str], Field(min_length=1, max_length=100, description="Available ingredients (1-100)")
    ]
    main_goal: Annotated[Optional[str], Field(None, max_length=200, description="Main goal, e.g. 'High protein'")]
    dietary_restrictions: Annotated[
        List[str], Field(default_factory=list, description="Dietary restrictions, order irrelevant")
    ]
    meal_type: Annotated[Optional[str], Field(None, max_length=100, description="Meal type, e.g. 'Dinner'")]

    @field_validator("ingredients", mode="before")
    @classmethod
    def drop_blank_ingredients(cls, ingredients):
        if ingredients is None:
            return []
        if isinstance(ingredients, str):
            ingredients = ingredients.split(",")
        return [str(item).strip() for item in ingredients if item is not None and str(item).strip()]

    @field_validator("dietary_restrictions", mode="before")
    @classmethod
    def dedupe_restrictions(cls, restrictions):
        if not restrictions:
            return []
        seen = set()
        unique = []
        for item in restrictions:
            name = str(item).strip()
            if name and name.lower() not in seen:
                seen.add(name.lower())
                unique.append(name)
        return unique

    @field_validator("main_goal", "meal_type", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


Difficulty = Literal["Easy", "Medium", "Hard"]


class RecipeDraft(WireModel):
    """One recipe as produced by the completion API (no id or gradient yet).

    Numeric fields tolerate floats and numeric strings since language models
    are loose with number formatting.
    """

    name: Annotated[str, Field(min_length=1, max_length=200)]
    description: str = ""
    prep_time: str = ""
    cook_time: str = ""
    servings: Annotated[int, Field(gt=0)]
    difficulty: Difficulty
    match_percentage: Annotated[int, Field(ge=0, le=100)]
    used_ingredients: List[str] = Field(default_factory=list)
    additional_ingredients: List[str] = Field(default_factory=list)
    calories: Annotated[int, Field(ge=0)]
    protein: Annotated[int, Field(ge=0)]
    instructions: List[str] = Field(default_factory=list)

    @field_validator("difficulty", mode="before")
    @classmethod
    def normalize_difficulty(cls, value):
        if isinstance(value, str):
            return value.strip().capitalize()
        return value

    @field_validator("servings", "match_percentage", "calories", "protein", mode="before")
    @classmethod
    def round_numbers(cls, value):
        if isinstance(value, str):
            # "420 kcal", "35g" -> leading number
            stripped = value.strip()
            digits = ""
            for char in stripped:
                if char.isdigit() or (char == "." and "." not in digits):
                    digits += char
                else:
                    break
            value = digits or stripped
            try:
                value = float(value)
            except ValueError:
                return stripped
        if isinstance(value, float):
            return int(round(value))
        return value

    @field_validator("prep_time", "cook_time", mode="before")
    @classmethod
    def time_as_text(cls, value):
        if isinstance(value, (int, float)):
            return f"{int(value)} min"
        return value


class RecipeRecord(RecipeDraft):
    """A recipe as streamed to the client: draft plus id and gradient token."""

    id: Annotated[int, Field(ge=1)]
    gradient: str

    @classmethod
    def from_draft(cls, draft: RecipeDraft, recipe_id: int, gradient: str) -> "RecipeRecord":
        return cls(**draft.model_dump(), id=recipe_id, gradient=gradient)


class SuggestionsEvent(BaseModel):
    type: Literal["suggestions"] = "suggestions"
    data: str


class RecipeEvent(BaseModel):
    type: Literal["recipe"] = "recipe"
    data: RecipeRecord


class CompleteEvent(BaseModel):
    type: Literal["complete"] = "complete"


class ErrorEvent(BaseModel):
    type: Literal["error"] = "error"
    message: str


StreamEvent = Annotated[
    Union[SuggestionsEvent, RecipeEvent, CompleteEvent, ErrorEvent],
    Field(discriminator="type"),
]


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class FeedbackRecord(WireModel):
    """User feedback entry. Created once, never mutated."""

    rating: Annotated[Optional[int], Field(None, ge=1, le=5)]
    feedback: Annotated[str, Field("", max_length=500)]
    timestamp: Annotated[str, Field(default_factory=_now_iso, description="ISO-8601 creation time")]

    @field_validator("timestamp")
    @classmethod
    def validate_timestamp(cls, value: str) -> str:
        # fromisoformat rejects the trailing "Z" browsers emit before Python 3.11
        datetime.fromisoformat(value.replace("Z", "+00:00"))
        return value


class FeedbackStats(WireModel):
    """Aggregate view over stored feedback."""

    total: int
    average_rating: float
    rating_distribution: List[int]
