"""Application state shared by every screen of the recipe client.

AppState is passed by reference to screens; navigate() is the only way to
change the current page. Side effects of a transition are looked up in
TRANSITION_EFFECTS instead of being scattered across screens.
"""

from enum import Enum
from typing import Any, Callable, Optional

from src.models.models import RecipeRecord
from src.utils.logger import logger


class Page(str, Enum):
    HOME = "home"
    DIETARY_PREFERENCES = "dietary-preferences"
    INGREDIENTS = "ingredients"
    GOALS = "goals"
    RECIPES = "recipes"
    RECIPE_DETAIL = "recipe-detail"
    LIKED_RECIPES = "liked-recipes"
    FEEDBACK_VISUALIZATION = "feedback-visualization"


# Pages that render without the back button
TOP_LEVEL_PAGES = {Page.HOME, Page.DIETARY_PREFERENCES, Page.FEEDBACK_VISUALIZATION}


class AppState:
    """Current page, user inputs and cached generation results."""

    def __init__(self) -> None:
        self.current_page = Page.HOME
        self.previous_page = Page.HOME
        self.ingredients: list[str] = []
        self.main_goal = ""
        self.dietary_restrictions: list[str] = []
        self.meal_type = ""
        self.selected_recipe: Optional[RecipeRecord] = None
        self.has_set_dietary_preferences = False
        self.generated_recipes: list[RecipeRecord] = []
        self.recipes_suggestions: Optional[str] = None

    @property
    def shows_back_button(self) -> bool:
        return self.current_page not in TOP_LEVEL_PAGES

    def clear_generation_cache(self) -> None:
        self.generated_recipes = []
        self.recipes_suggestions = None

    def cache_generation(self, recipes: list[RecipeRecord], suggestions: Optional[str]) -> None:
        """Keep the last generation so returning to the recipes page does not regenerate."""
        self.generated_recipes = list(recipes)
        self.recipes_suggestions = suggestions

    def generation_request_payload(self) -> dict[str, Any]:
        """Body for the generation endpoint built from the collected inputs."""
        return {
            "ingredients": list(self.ingredients),
            "mainGoal": self.main_goal,
            "dietaryRestrictions": list(self.dietary_restrictions),
            "mealType": self.meal_type,
        }

    def navigate(self, page: Page | str, data: Optional[dict[str, Any]] = None, update_history: bool = True) -> None:
        """Move to ``page``, applying the transition's side effects and any carried data.

        Args:
            page: Target page.
            data: Optional values collected on the source page (ingredients,
                mainGoal, dietaryRestrictions, mealType, recipe).
            update_history: Remember the current page as the back target.
        """
        page = Page(page)
        source = self.current_page
        logger.debug(f"Navigate {source.value} -> {page.value} (update_history={update_history})")

        if update_history:
            self.previous_page = source
        self.current_page = page

        for effect in TRANSITION_EFFECTS.get(page, []):
            effect(self)

        if data:
            self._apply_data(source, data)

    def go_back(self) -> None:
        self.navigate(self.previous_page, update_history=False)

    def _apply_data(self, source: Page, data: dict[str, Any]) -> None:
        if data.get("ingredients"):
            self.ingredients = list(data["ingredients"])
        if data.get("mainGoal"):
            self.main_goal = data["mainGoal"]
        if "dietaryRestrictions" in data and data["dietaryRestrictions"] is not None:
            self.dietary_restrictions = list(data["dietaryRestrictions"])
            # An empty selection still counts as having answered the question
            if source in (Page.DIETARY_PREFERENCES, Page.HOME):
                self.has_set_dietary_preferences = True
        if data.get("mealType"):
            self.meal_type = data["mealType"]
        if data.get("recipe"):
            recipe = data["recipe"]
            self.selected_recipe = recipe if isinstance(recipe, RecipeRecord) else RecipeRecord.model_validate(recipe)


TRANSITION_EFFECTS: dict[Page, list[Callable[[AppState], None]]] = {
    # Starting a new generation flow invalidates cached results
    Page.INGREDIENTS: [AppState.clear_generation_cache],
    Page.GOALS: [AppState.clear_generation_cache],
}
