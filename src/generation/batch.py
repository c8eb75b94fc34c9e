"""Single-batch recipe generation.

generate_batch() makes exactly one completion call, strips an optional code
fence from the answer, parses it as JSON and validates every entry of the
``recipes`` array into a RecipeDraft. Any failure is raised to the caller;
there are no retries at this level.
"""

import json
import re
from typing import Optional, Sequence

from pydantic import ValidationError as PydanticValidationError

from src.generation.completion import CompletionClient
from src.models.models import RecipeDraft
from src.prompts.prompts import SYSTEM_INSTRUCTION, build_batch_prompt
from src.utils.config import config
from src.utils.errors import ParseError, SchemaError
from src.utils.logger import logger


_FENCE_RE = re.compile(r"```(?:json)?\s*\n?|\n?```", re.IGNORECASE)


def strip_code_fence(content: str) -> str:
    """Remove ```json / ``` fence markers wrapping model output."""
    return _FENCE_RE.sub("", content).strip()


def parse_recipes_payload(content: str) -> list[RecipeDraft]:
    """Parse model output into recipe drafts.

    Args:
        content: Raw text returned by the completion API.

    Returns:
        Validated drafts, in the order the model listed them.

    Raises:
        ParseError: If the text is not valid JSON after stripping a code fence.
        SchemaError: If there is no ``recipes`` array or an entry is malformed.
    """
    cleaned = strip_code_fence(content)
    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.debug(f"Content that failed to parse: {cleaned[:200]}")
        raise ParseError(f"Failed to parse completion response: {e}") from e

    recipes = payload.get("recipes") if isinstance(payload, dict) else None
    if not isinstance(recipes, list):
        raise SchemaError("Response does not contain valid recipes array")

    drafts = []
    for index, item in enumerate(recipes):
        try:
            drafts.append(RecipeDraft.model_validate(item))
        except PydanticValidationError as e:
            raise SchemaError(f"Recipe {index + 1} is malformed: {e.error_count()} validation error(s)") from e
    return drafts


class BatchGenerator:
    """Calls the completion API once per batch and returns recipe drafts."""

    def __init__(
        self,
        client: CompletionClient,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> None:
        self.client = client
        self.temperature = config.TEMPERATURE if temperature is None else temperature
        self.max_tokens = max_tokens or config.MAX_OUTPUT_TOKENS

    async def generate_batch(
        self,
        ingredients: Sequence[str],
        goal_text: str,
        dietary_text: str,
        meal_text: str,
        count: int,
    ) -> list[RecipeDraft]:
        """Generate one batch of recipes.

        Args:
            ingredients: Available ingredients.
            goal_text: Goal context line (may be empty).
            dietary_text: Dietary restrictions line (may be empty).
            meal_text: Meal type line (may be empty).
            count: Number of recipes to request.

        Returns:
            Recipe drafts parsed from the model output.

        Raises:
            UpstreamError: The completion API failed.
            ParseError: The output is not JSON.
            SchemaError: The output lacks a valid recipes array.
        """
        prompt = build_batch_prompt(ingredients, goal_text, dietary_text, meal_text, count)

        logger.info(f"📡 Calling completion API for {count} recipes...")
        content = await self.client.complete(
            system_instruction=SYSTEM_INSTRUCTION,
            prompt=prompt,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
        logger.debug(f"Raw content: {content[:100]}...")

        drafts = parse_recipes_payload(content)
        if len(drafts) != count:
            logger.warning(f"Requested {count} recipes, model returned {len(drafts)}")
            # ids are allocated per batch, extra entries would collide with the next batch
            drafts = drafts[:count]
        logger.info(f"✅ Successfully parsed {len(drafts)} recipes")
        return drafts
