#!/usr/bin/env python3
"""Ad hoc recipe generation runner.

Generate recipes from the command line and watch them stream in.

Usage:
    python query.py "chicken, rice, broccoli"
    python query.py --diet vegan,gluten-free --goal "High protein" --meal dinner "tofu, rice"
    python query.py --url http://localhost:7777 "eggs, spinach"   # against a running server
    python query.py --debug "pasta, tomato"                        # print every recipe as JSON

Features:
- In-process generation by default (no server needed, GEMINI_API_KEY required)
- Same wire framing and consumer as the web client
- Live "N of 6 ready" progress, partial results kept on batch failure
"""

import asyncio
import sys
from typing import AsyncIterator, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from src.client.state import AppState, Page
from src.generation.orchestrator import StreamOrchestrator
from src.models.models import GenerationRequest, RecipeRecord
from src.streaming.consumer import GenerationOutcome, RecipeStreamClient, RecipeStreamState, StreamConsumer
from src.streaming.protocol import encode_event
from src.utils.errors import TransportError
from src.utils.logger import logger

console = Console()


def render_recipe(recipe: RecipeRecord, state: RecipeStreamState, debug: bool = False) -> None:
    """Print one recipe card as it arrives."""
    if debug:
        console.print_json(data=recipe.to_wire())
        return

    table = Table.grid(padding=(0, 2))
    table.add_row("[bold]Time[/bold]", f"prep {recipe.prep_time} · cook {recipe.cook_time}")
    table.add_row("[bold]Serves[/bold]", f"{recipe.servings} · {recipe.difficulty}")
    table.add_row("[bold]Match[/bold]", f"{recipe.match_percentage}%")
    table.add_row("[bold]Nutrition[/bold]", f"{recipe.calories} kcal · {recipe.protein} g protein")
    table.add_row("[bold]Uses[/bold]", ", ".join(recipe.used_ingredients) or "-")
    table.add_row("[bold]Also needs[/bold]", ", ".join(recipe.additional_ingredients) or "-")
    steps = "\n".join(f"{i}. {step}" for i, step in enumerate(recipe.instructions, start=1))
    table.add_row("[bold]Steps[/bold]", steps or "-")

    console.print(
        Panel(
            table,
            title=f"#{recipe.id} {recipe.name}",
            subtitle=f"[dim]{state.progress_label}[/dim]",
            subtitle_align="right",
        )
    )
    if recipe.description:
        console.print(f"  [italic]{recipe.description}[/italic]")


async def _in_process_stream(request: GenerationRequest) -> AsyncIterator[bytes]:
    """Run the orchestrator locally and yield the same bytes the server would send."""
    orchestrator = StreamOrchestrator()
    async for event in orchestrator.handle_generate(request):
        yield encode_event(event).encode("utf-8")


def collect_inputs(
    ingredients: list[str],
    dietary_restrictions: list[str],
    main_goal: Optional[str] = None,
    meal_type: Optional[str] = None,
) -> AppState:
    """Walk the client screens in order, carrying each screen's input forward."""
    app_state = AppState()
    app_state.navigate(Page.DIETARY_PREFERENCES)
    app_state.navigate(Page.INGREDIENTS, {"dietaryRestrictions": dietary_restrictions})
    app_state.navigate(Page.GOALS, {"ingredients": ingredients})
    app_state.navigate(Page.RECIPES, {"mainGoal": main_goal, "mealType": meal_type})
    return app_state


def build_request(app_state: AppState) -> GenerationRequest:
    """Generation request from the collected inputs.

    Raises:
        ValueError: If no usable ingredient was collected.
    """
    return GenerationRequest.model_validate(app_state.generation_request_payload())


async def run_query(
    request: GenerationRequest,
    url: Optional[str] = None,
    debug: bool = False,
    app_state: Optional[AppState] = None,
) -> RecipeStreamState:
    """Generate recipes and render them as they arrive.

    When app_state is given, the received recipes and suggestions are cached
    on it once the stream ends, including partial results of a failed run.
    """
    state = RecipeStreamState()
    state.on_suggestions(lambda text: console.print(f"[cyan]💡 {text}[/cyan]\n"))
    state.on_recipe(lambda recipe, current: render_recipe(recipe, current, debug))

    if url:
        logger.info(f"Streaming from {url}")
        state = await RecipeStreamClient(url).generate(request, state)
    else:
        logger.info("Generating in-process")
        state = await StreamConsumer(state).consume(_in_process_stream(request))

    if app_state is not None:
        app_state.cache_generation(state.recipes, state.suggestions)
    return state


def report(state: RecipeStreamState) -> int:
    """Print the final outcome, returning the process exit code."""
    console.print()
    if state.outcome is GenerationOutcome.COMPLETE:
        console.print(f"[green]✓ All recipes received ({state.progress_label})[/green]")
        return 0
    if state.outcome is GenerationOutcome.ERROR:
        console.print(f"[red]✗ {state.error}[/red]")
        if state.recipes:
            console.print(f"[yellow]Showing {state.progress_label}[/yellow]")
        return 1
    console.print(f"[yellow]⚠ Stream ended early ({state.progress_label})[/yellow]")
    return 1


USAGE = 'Usage: python query.py [--url URL] [--diet a,b] [--goal TEXT] [--meal TEXT] [--debug] "<ingredients>"'


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print(USAGE)
        print("")
        print("Examples:")
        print('  python query.py "chicken, rice"')
        print('  python query.py --diet vegan --meal dinner "chicken, rice"')
        print('  python query.py --url http://localhost:7777 "eggs, spinach"')
        sys.exit(1)

    options = {"--url": None, "--diet": None, "--goal": None, "--meal": None}
    debug_mode = False
    argv_start = 1

    while argv_start < len(sys.argv) and sys.argv[argv_start].startswith("--"):
        flag = sys.argv[argv_start]
        if flag == "--debug":
            debug_mode = True
            argv_start += 1
        elif flag in options:
            if argv_start + 1 >= len(sys.argv):
                print(f"Error: {flag} flag requires a value")
                sys.exit(1)
            options[flag] = sys.argv[argv_start + 1]
            argv_start += 2
        else:
            print(f"Unknown flag: {flag}")
            sys.exit(1)

    if argv_start >= len(sys.argv):
        print("Error: No ingredients provided")
        print(USAGE)
        sys.exit(1)

    client_state = collect_inputs(
        ingredients=" ".join(sys.argv[argv_start:]).split(","),
        dietary_restrictions=[d.strip() for d in (options["--diet"] or "").split(",") if d.strip()],
        main_goal=options["--goal"],
        meal_type=options["--meal"],
    )
    try:
        generation_request = build_request(client_state)
    except ValueError:
        print("Error: No ingredients provided")
        sys.exit(1)

    try:
        final_state = asyncio.run(
            run_query(generation_request, url=options["--url"], debug=debug_mode, app_state=client_state)
        )
    except KeyboardInterrupt:
        logger.info("\nQuery interrupted by user.")
        sys.exit(0)
    except TransportError as e:
        logger.error(f"Stream failed: {e}")
        sys.exit(1)

    sys.exit(report(final_state))
