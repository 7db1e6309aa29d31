"""
Textual front-end for Chronicle: title screen, adventure view with sidebar,
and the guide chat. All state lives in the AdventureSession; this module
only renders it and forwards player input.
"""

import logging
from typing import Optional

from rich.text import Text
from textual.app import App, ComposeResult
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import (
    Button, Footer, Header, Input, Label, RadioButton, RadioSet, RichLog, Static
)

from chronicle.agents.illustrator import save_scene_image, show_scene_image
from chronicle.config import IMAGE_EXPORT_DIR
from chronicle.models import AdventureTheme, ImageSize
from chronicle.session import AdventureSession

logger = logging.getLogger(__name__)

BILLING_URL = "https://ai.google.dev/gemini-api/docs/billing"


class KeyPromptScreen(ModalScreen[Optional[str]]):
    """Asks the player for a Gemini API key."""

    def compose(self) -> ComposeResult:
        with Vertical(id="key-dialog"):
            yield Label("🔑 Adventure Requires Access", classes="section-title")
            yield Static(
                "To generate high-quality 2K/4K visual memories you must select a valid "
                f"API key from a paid GCP project.\nLearn about API billing: {BILLING_URL}",
                markup=False,
            )
            yield Input(placeholder="Paste your Gemini API key", password=True, id="key-input")
            with Horizontal(id="key-buttons"):
                yield Button("Select API Key", variant="warning", id="select-key")
                yield Button("Cancel", id="cancel-key")

    def _submit(self) -> None:
        value = self.query_one("#key-input", Input).value.strip()
        if value:
            self.dismiss(value)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "select-key":
            self._submit()
        else:
            self.dismiss(None)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        self._submit()


class ChronicleApp(App):
    """The main application class for the adventure."""

    TITLE = "CHRONICLE"
    SUB_TITLE = "Infinite Adventures"

    CSS = """
    #title-view { align: center middle; padding: 1 4; }
    #title-view > * { margin-bottom: 1; }
    #title-banner { text-style: bold italic; content-align: center middle; width: 100%; }
    #adventure-view { height: 1fr; }
    #story-column { width: 3fr; padding: 1 2; }
    #scene-image { border: thick $primary; padding: 1; min-height: 5; }
    #story-text { margin: 1 0; }
    #choices { height: auto; }
    #choices Button { width: 100%; margin-bottom: 1; }
    #sidebar { width: 1fr; min-width: 34; border-left: thick $secondary; padding: 0 1; }
    #guide-log { height: 1fr; border: round $accent; }
    .section-title { text-style: bold; margin-top: 1; }
    .error { color: $error; }
    .the-end { text-style: bold; content-align: center middle; width: 100%; }
    KeyPromptScreen { align: center middle; }
    #key-dialog { width: 70; height: auto; border: thick $warning; background: $surface; padding: 1 2; }
    #key-buttons { height: auto; margin-top: 1; }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("g", "focus_guide", "Ask the Guide"),
        ("s", "save_image", "Save Image"),
        ("v", "view_image", "View Image"),
        ("r", "reset", "Return to Origin"),
    ]

    def __init__(self, session: AdventureSession, **kwargs):
        super().__init__(**kwargs)
        self.session = session
        self._rendered_state = None
        self._rendered_messages = 0
        self._key_prompt_open = False

    def compose(self) -> ComposeResult:
        yield Header()
        with Vertical(id="title-view"):
            yield Static("C H R O N I C L E", id="title-banner")
            yield Label("Theme", classes="section-title")
            with RadioSet(id="theme-set"):
                for theme in AdventureTheme:
                    yield RadioButton(theme.value, value=theme is self.session.theme)
            yield Label("Image Fidelity", classes="section-title")
            with RadioSet(id="size-set"):
                for size in ImageSize:
                    yield RadioButton(size.value, value=size is self.session.image_size)
            yield Button("Begin Journey", variant="primary", id="begin")
            yield Static("", id="title-error", classes="error")
        with Horizontal(id="adventure-view"):
            with VerticalScroll(id="story-column"):
                yield Static("", id="scene-image")
                yield Static("", id="story-text")
                yield Static("", id="story-error", classes="error")
                yield Vertical(id="choices")
                yield Static("", id="loading-indicator")
            with Vertical(id="sidebar"):
                yield Label("📜 Current Quest", classes="section-title")
                yield Static("", id="quest")
                yield Label("🎒 Inventory", classes="section-title")
                yield Static("", id="inventory")
                yield Label("✨ Chronicle Guide", classes="section-title")
                yield RichLog(id="guide-log", wrap=True)
                yield Input(placeholder="Ask the guide...", id="guide-input")
        yield Footer()

    def on_mount(self) -> None:
        self.session.subscribe(self._on_session_change)
        self.refresh_view()

    def on_unmount(self) -> None:
        self.session.unsubscribe(self._on_session_change)

    def _on_session_change(self, session: AdventureSession) -> None:
        self.refresh_view()

    # --- Rendering ---

    def refresh_view(self) -> None:
        session = self.session
        started = session.game_state is not None

        self.query_one("#title-view").display = not started
        self.query_one("#adventure-view").display = started

        begin = self.query_one("#begin", Button)
        begin.disabled = session.loading
        begin.label = "Consulting the Fates..." if session.loading else "Begin Journey"
        self.query_one("#title-error", Static).update(Text(session.error or "") if not started else "")

        if started:
            self._render_adventure()
        self._render_guide()

        if session.show_key_prompt and not self._key_prompt_open:
            self._key_prompt_open = True
            self.push_screen(KeyPromptScreen(), callback=self._on_key_prompt_closed)

    def _render_adventure(self) -> None:
        session = self.session
        state = session.game_state

        if state is not self._rendered_state:
            if state.image_url:
                image_text = Text(f"🖼  {state.image_description}\n", style="italic")
                image_text.append("Press s to save or v to view the illustration.", style="dim")
            else:
                image_text = Text("Painting the vision...", style="dim")
            self.query_one("#scene-image", Static).update(image_text)
            self.query_one("#story-text", Static).update(Text(state.story_text))
            self.query_one("#quest", Static).update(Text(state.current_quest or "No active quest.", style="italic"))
            inventory = "\n".join(f"• {item}" for item in state.inventory) or "Empty-handed for now."
            self.query_one("#inventory", Static).update(Text(inventory))

            choices = self.query_one("#choices", Vertical)
            choices.remove_children()
            if state.is_game_over:
                choices.mount(Static("THE END", classes="the-end"))
                choices.mount(Button("Return to Origin", variant="primary", classes="return-origin"))
            else:
                choices.mount_all(
                    Button(f"0{idx + 1}  {choice}", name=str(idx), classes="choice")
                    for idx, choice in enumerate(state.choices)
                )
            self._rendered_state = state

        for button in self.query("#choices Button.choice"):
            button.disabled = session.loading
        self.query_one("#story-error", Static).update(Text(session.error or ""))
        self.query_one("#loading-indicator", Static).update(
            Text("⏳ The Loom is weaving...", style="bold") if session.loading else ""
        )

    def _render_guide(self) -> None:
        session = self.session
        log = self.query_one("#guide-log", RichLog)
        if len(session.chat_messages) < self._rendered_messages:
            log.clear()
            self._rendered_messages = 0
        if not session.chat_messages and self._rendered_messages == 0:
            log.clear()
            log.write(Text("Ask me about the world, your items, or your quest...", style="dim italic"))
        for message in session.chat_messages[self._rendered_messages:]:
            if message.role == "user":
                log.write(Text(f"You: {message.content}", style="bold magenta"))
            else:
                log.write(Text(f"Guide: {message.content}"))
        self._rendered_messages = len(session.chat_messages)
        self.query_one("#guide-input", Input).disabled = session.chat_loading or session.game_state is None

    # --- Input ---

    def on_radio_set_changed(self, event: RadioSet.Changed) -> None:
        if self.session.game_state is not None or self.session.loading:
            return
        if event.radio_set.id == "theme-set":
            self.session.set_theme(list(AdventureTheme)[event.index])
        elif event.radio_set.id == "size-set":
            self.session.set_image_size(list(ImageSize)[event.index])

    def on_button_pressed(self, event: Button.Pressed) -> None:
        button = event.button
        if button.id == "begin":
            self.run_worker(self.session.start_adventure(), group="adventure")
        elif button.has_class("choice"):
            choices = self.session.available_choices
            idx = int(button.name)
            if idx < len(choices):
                self.run_worker(self.session.make_choice(choices[idx]), group="adventure")
        elif button.has_class("return-origin"):
            self.action_reset()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id != "guide-input":
            return
        query = event.value
        event.input.value = ""
        self.run_worker(self.session.ask_guide(query), group="guide")

    def _on_key_prompt_closed(self, api_key: Optional[str]) -> None:
        self._key_prompt_open = False
        if api_key:
            self.session.select_credential(api_key)
            self.notify("API key selected. Try your action again.")
        else:
            self.session.dismiss_key_prompt()

    # --- Actions ---

    def action_focus_guide(self) -> None:
        self.query_one("#guide-input", Input).focus()

    def action_save_image(self) -> None:
        state = self.session.game_state
        if state is None or not state.image_url:
            self.notify("No illustration to save yet.", severity="warning")
            return
        stem = f"scene_{self.session.session_id}_{len(self.session.history):02d}"
        try:
            path = save_scene_image(state.image_url, IMAGE_EXPORT_DIR, stem)
        except (ValueError, OSError) as e:
            logger.error(f"[ChronicleApp] Could not save illustration: {e}", exc_info=True)
            self.notify(f"Could not save the illustration: {e}", severity="error")
            return
        self.notify(f"Saved illustration to {path}")

    def action_view_image(self) -> None:
        state = self.session.game_state
        if state is None or not state.image_url:
            self.notify("No illustration to view yet.", severity="warning")
            return
        try:
            show_scene_image(state.image_url)
        except (ValueError, OSError) as e:
            logger.error(f"[ChronicleApp] Could not open illustration: {e}", exc_info=True)
            self.notify(f"Could not open the illustration: {e}", severity="error")

    def action_reset(self) -> None:
        self.session.reset()
        self._rendered_state = None


def run_chronicle_app(session: AdventureSession):
    app = ChronicleApp(session=session)
    app.run()
