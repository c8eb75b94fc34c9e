"""Test helpers: recipe payloads and a scripted completion client."""

import json
from typing import Optional


def recipe_dict(name: str = "Chicken Rice Bowl", **overrides) -> dict:
    """One recipe as the completion model would write it (camelCase, no id/gradient)."""
    recipe = {
        "name": name,
        "description": "A quick weeknight bowl.",
        "prepTime": "10 min",
        "cookTime": "20 min",
        "servings": 2,
        "difficulty": "Easy",
        "matchPercentage": 90,
        "usedIngredients": ["chicken", "rice"],
        "additionalIngredients": ["salt", "olive oil", "garlic"],
        "calories": 520,
        "protein": 38,
        "instructions": ["Cook the rice.", "Sear the chicken.", "Assemble the bowl."],
    }
    recipe.update(overrides)
    return recipe


def batch_response(prefix: str, count: int = 3, fenced: bool = False) -> str:
    """Completion text holding ``count`` recipes named '<prefix> 1'..'<prefix> N'."""
    text = json.dumps({"recipes": [recipe_dict(f"{prefix} {i}") for i in range(1, count + 1)]})
    if fenced:
        return f"```json\n{text}\n```"
    return text


class ScriptedCompletionClient:
    """Completion client returning (or raising) scripted responses in order."""

    def __init__(self, responses: Optional[list] = None) -> None:
        self.responses = list(responses or [])
        self.calls: list[dict] = []

    async def complete(self, system_instruction: str, prompt: str, temperature: float, max_tokens: int) -> str:
        self.calls.append(
            {
                "system_instruction": system_instruction,
                "prompt": prompt,
                "temperature": temperature,
                "max_tokens": max_tokens,
            }
        )
        if not self.responses:
            raise AssertionError("Unexpected completion call")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


async def chunked(*chunks: bytes):
    """Async byte stream delivering the given chunks in order."""
    for chunk in chunks:
        yield chunk
