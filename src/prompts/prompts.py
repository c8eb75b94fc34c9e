"""System instruction and batch prompt builder for recipe generation.

The batch prompt asks the completion model for a strict JSON object
``{"recipes": [...]}`` with exactly ``count`` entries. When dietary restrictions
are active, every known restriction is spelled out as a hard constraint with its forbidden and
allowed ingredients, and the model is told to drop incompatible available
ingredients before composing recipes.
"""

from typing import Optional, Sequence


SYSTEM_INSTRUCTION = (
    "You are a professional chef and nutritionist who creates personalized recipe recommendations. "
    "You MUST strictly enforce ALL dietary restrictions - they are non-negotiable religious, health, "
    "and ethical requirements. Filter out incompatible ingredients before creating recipes. "
    "Always respond with valid JSON only, no additional text."
)


# restriction key -> (label, forbidden, allowed / guidance)
DIETARY_RULES: dict[str, tuple[str, str, str]] = {
    "vegetarian": (
        "Vegetarian",
        "meat, poultry, fish, seafood, gelatin",
        "Dairy and eggs are allowed",
    ),
    "vegan": (
        "Vegan",
        "ALL meat, poultry, fish, seafood, dairy, eggs, honey, gelatin",
        "Ignore any animal products from the ingredients list; use plant-based proteins",
    ),
    "gluten-free": (
        "Gluten-Free",
        "wheat, barley, rye, regular pasta, bread, flour, couscous, soy sauce with wheat",
        "Use gluten-free alternatives only (rice, quinoa, corn, certified gluten-free products)",
    ),
    "dairy-free": (
        "Dairy-Free",
        "milk, cheese, yogurt, butter, cream, ice cream, whey",
        "Use dairy-free alternatives (plant milks, olive oil, coconut cream)",
    ),
    "keto": (
        "Keto",
        "sugar, bread, pasta, rice, potatoes, grains, high-carb foods",
        "Focus on high-fat, low-carb ingredients",
    ),
    "paleo": (
        "Paleo",
        "grains, legumes, dairy, processed foods, refined sugar",
        "Focus on whole, unprocessed foods: meat, fish, vegetables, fruit, nuts",
    ),
    "halal": (
        "Halal",
        "pork, bacon, ham, sausage (unless explicitly halal), pepperoni, prosciutto, alcohol, wine, beer, liquor",
        "Only use halal-certified meat or clearly halal ingredients",
    ),
    "kosher": (
        "Kosher",
        "pork, bacon, ham, shellfish, shrimp, crab, lobster, oysters, clams, mixing meat with dairy",
        "Only use kosher-certified ingredients; never combine meat and dairy in one recipe",
    ),
    "nut-free": (
        "Nut-Free",
        "all nuts, peanuts, almond, cashew, walnut, pecan, pistachio, nut butters, nut oils",
        "Completely exclude nuts from recipes",
    ),
    "low-carb": (
        "Low-Carb",
        "bread, pasta, rice, sugar, starchy vegetables (minimize)",
        "Focus on proteins and low-carb vegetables",
    ),
}


def build_context(
    main_goal: Optional[str],
    dietary_restrictions: Sequence[str],
    meal_type: Optional[str],
) -> tuple[str, str, str]:
    """Build the goal, dietary and meal context lines shared by every batch.

    Returns:
        (goal_text, dietary_text, meal_text); each is empty when not provided.
    """
    goal_text = f"Main goal: {main_goal}. " if main_goal else ""
    dietary_text = (
        f"Dietary restrictions: {', '.join(dietary_restrictions)}. " if dietary_restrictions else ""
    )
    meal_text = f"Meal type: {meal_type}. " if meal_type else ""
    return goal_text, dietary_text, meal_text


def dietary_rules_section(dietary_text: str) -> str:
    """Hard-constraint rules block, empty when no restrictions are active.

    Every known restriction is listed; the model applies those named in
    ``dietary_text``.
    """
    if not dietary_text:
        return ""

    lines = [
        "",
        "⚠️ CRITICAL DIETARY RESTRICTIONS - HIGHEST PRIORITY - MUST BE ENFORCED:",
        "THESE RULES OVERRIDE EVERYTHING ELSE AND MUST BE FOLLOWED ABSOLUTELY:",
        "",
    ]
    for label, forbidden, allowed in DIETARY_RULES.values():
        lines.append(f'- If dietary restrictions include "{label}":')
        lines.append(f"  🚫 FORBIDDEN INGREDIENTS: {forbidden}")
        lines.append(
            "  ✅ If any of these forbidden ingredients appear in the available ingredients list, "
            "COMPLETELY IGNORE THEM - DO NOT USE THEM AT ALL"
        )
        lines.append(f"  ✅ {allowed}")
        lines.append("")
    lines.append(
        "- For any other restriction: exclude every ingredient that violates it."
    )
    lines.append("")
    lines.append(
        "ENFORCEMENT: Before creating any recipe, silently filter out all incompatible ingredients "
        "from the available list. Only use compatible ingredients that meet ALL dietary restrictions. "
        "Compliance matters more than the match percentage."
    )
    lines.append("")
    return "\n".join(lines)


def build_batch_prompt(
    ingredients: Sequence[str],
    goal_text: str,
    dietary_text: str,
    meal_text: str,
    count: int,
) -> str:
    """Build the user prompt for one batch of ``count`` recipes.

    Args:
        ingredients: Available ingredients, in user order.
        goal_text: "Main goal: ..." line or empty string.
        dietary_text: "Dietary restrictions: ..." line or empty string.
        meal_text: "Meal type: ..." line or empty string.
        count: Exact number of recipes to request.

    Returns:
        Prompt text for the completion API.
    """
    compatible = "COMPATIBLE " if dietary_text else ""
    available = ", ".join(ingredients)
    rules = dietary_rules_section(dietary_text)
    return f"""You are a professional chef and nutritionist. Generate exactly {count} diverse recipe suggestions based on the following:

Ingredients available: {available}
{goal_text}{dietary_text}{meal_text}
{rules}
IMPORTANT: Create recipes using MOSTLY the {compatible}ingredients from the available list. Aim for 85-100% match with {compatible}ingredients only.

For each recipe, provide:
1. A creative, appetizing name
2. A brief description (1-2 sentences)
3. Prep time (e.g. "15 min")
4. Cook time (e.g. "25 min")
5. Number of servings
6. Difficulty level (Easy, Medium, or Hard)
7. Match percentage (how well it uses the available {compatible}ingredients, 0-100) - Aim for 85-100%
8. List of ingredients from the available ingredients that are used
9. List of 3-5 additional common ingredients needed (keep minimal - only essentials)
10. Estimated calories per serving
11. Estimated protein in grams per serving
12. Brief cooking instructions (3-5 steps)

Format your response as a valid JSON object with this exact structure:
{{
  "recipes": [
    {{
      "name": "Recipe Name",
      "description": "Brief description",
      "prepTime": "15 min",
      "cookTime": "25 min",
      "servings": 4,
      "difficulty": "Easy",
      "matchPercentage": 92,
      "usedIngredients": ["ingredient1", "ingredient2"],
      "additionalIngredients": ["ingredient3", "ingredient4"],
      "calories": 420,
      "protein": 35,
      "instructions": ["Step 1", "Step 2", "Step 3"]
    }}
  ]
}}

The "recipes" array must contain exactly {count} entries. Make the recipes diverse, practical, and appealing."""
