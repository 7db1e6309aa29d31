# chronicle/console_app.py - Plain rich console front-end

import asyncio
import logging

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table
from rich.text import Text

from chronicle.agents.illustrator import save_scene_image
from chronicle.config import IMAGE_EXPORT_DIR
from chronicle.models import AdventureTheme, ImageSize, SessionPhase
from chronicle.session import AdventureSession

logger = logging.getLogger(__name__)

HELP_TEXT = "Enter a choice number, '?<question>' to ask the guide, 's' to save the illustration, or 'q' to quit."


async def _ask(*args, **kwargs) -> str:
    return await asyncio.to_thread(Prompt.ask, *args, **kwargs)


def render_scene(console: Console, session: AdventureSession) -> None:
    state = session.game_state
    if state.image_url:
        console.print(Text(f"🖼  {state.image_description}", style="italic dim"))
    console.print(Panel(Text(state.story_text), title=session.theme.value, border_style="white"))

    sidebar = Table(show_header=False, box=None, padding=(0, 1))
    sidebar.add_row("[bold yellow]📜 Quest[/bold yellow]", Text(state.current_quest or "No active quest."))
    sidebar.add_row("[bold green]🎒 Inventory[/bold green]", Text(", ".join(state.inventory) or "Empty-handed for now."))
    console.print(sidebar)

    if session.error:
        console.print(f"[bold red]{session.error}[/bold red]")

    for idx, choice in enumerate(session.available_choices):
        console.print(f"  [dim]0{idx + 1}[/dim]  {choice}")


async def _choose_settings(console: Console, session: AdventureSession) -> None:
    console.print(Panel("[bold]CHRONICLE[/bold]\n[dim]Infinite Adventures[/dim]", expand=False))
    theme_names = [theme.name.lower() for theme in AdventureTheme]
    theme = await _ask("Theme", choices=theme_names, default=session.theme.name.lower(), console=console)
    session.set_theme(AdventureTheme.from_string(theme))
    size = await _ask("Image fidelity", choices=[s.value for s in ImageSize], default=session.image_size.value, console=console)
    session.set_image_size(ImageSize.parse(size))


async def run_console(session: AdventureSession, console: Console) -> None:
    while True:
        if session.show_key_prompt:
            console.print("[bold yellow]🔑 Adventure requires access.[/bold yellow] Select a Gemini API key from a paid GCP project.")
            api_key = await _ask("API key (blank to quit)", password=True, default="", show_default=False, console=console)
            if not api_key.strip():
                return
            session.select_credential(api_key)
            continue

        if session.phase is SessionPhase.NOT_STARTED:
            if session.error:
                console.print(f"[bold red]{session.error}[/bold red]")
                if not await asyncio.to_thread(Confirm.ask, "Try again?", console=console):
                    return
            else:
                await _choose_settings(console, session)
            with console.status("Consulting the Fates..."):
                await session.start_adventure()
            continue

        render_scene(console, session)

        if session.phase is SessionPhase.ENDED:
            console.print("\n[bold]THE END[/bold]")
            if await asyncio.to_thread(Confirm.ask, "Return to origin?", console=console):
                session.reset()
                continue
            return

        entry = (await _ask("What do you do?", console=console)).strip()
        if entry.lower() == "q":
            return
        if entry.lower() == "s":
            _save_image(console, session)
        elif entry.startswith("?"):
            with console.status("The guide ponders..."):
                reply = await session.ask_guide(entry[1:])
            if reply:
                console.print(Panel(Text(reply), title="✨ Chronicle Guide", border_style="magenta"))
        elif entry.isdigit() and 1 <= int(entry) <= len(session.available_choices):
            choice = session.available_choices[int(entry) - 1]
            with console.status("The Loom is weaving..."):
                await session.make_choice(choice)
        else:
            console.print(f"[dim]{HELP_TEXT}[/dim]")


def _save_image(console: Console, session: AdventureSession) -> None:
    state = session.game_state
    if not state.image_url:
        console.print("[yellow]No illustration to save yet.[/yellow]")
        return
    stem = f"scene_{session.session_id}_{len(session.history):02d}"
    try:
        path = save_scene_image(state.image_url, IMAGE_EXPORT_DIR, stem)
    except (ValueError, OSError) as e:
        logger.error(f"[Console] Could not save illustration: {e}", exc_info=True)
        console.print(f"[red]Could not save the illustration:[/red] {e}")
        return
    console.print(f"Saved illustration to [bold]{path}[/bold]")


def run_console_app(session: AdventureSession) -> None:
    asyncio.run(run_console(session, Console()))
