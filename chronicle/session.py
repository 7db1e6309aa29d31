"""
AdventureSession - the single owner of everything a running adventure holds.

The front-end creates one session, subscribes to it, and drives it through
`start_adventure`, `make_choice`, `ask_guide` and `reset`. GameState and
history are only ever replaced together, after both the narrative and the
image call for a step have succeeded.
"""

import logging
import uuid
from typing import Callable, List, Optional

from chronicle.agents.illustrator import generate_scene_image
from chronicle.agents.lore_assistant import get_chat_response
from chronicle.agents.narrator import generate_next_step
from chronicle.config import (
    CHOICE_FAILURE_MESSAGE,
    GUIDE_FALLBACK_MESSAGE,
    OPENING_CHOICE_LABEL,
    SENTINEL_ACTION,
    START_FAILURE_MESSAGE,
    VISUAL_STYLE_TEMPLATE,
)
from chronicle.credentials import CredentialStore
from chronicle.exceptions import CredentialError
from chronicle.llm_service import LLMService
from chronicle.logger_config import log_event
from chronicle.models import AdventureTheme, ChatMessage, GameState, HistoryEntry, ImageSize, SessionPhase

logger = logging.getLogger(__name__)

Listener = Callable[["AdventureSession"], None]


class AdventureSession:
    """
    Usage:
        session = AdventureSession(LLMService(), CredentialStore())
        session.subscribe(render)
        await session.start_adventure()
        await session.make_choice(session.game_state.choices[0])
    """

    def __init__(
        self,
        llm: LLMService,
        credentials: CredentialStore,
        theme: AdventureTheme = AdventureTheme.FANTASY,
        image_size: ImageSize = ImageSize.LOW,
        event_logger: Optional[logging.Logger] = None,
    ):
        self.llm = llm
        self.credentials = credentials
        self.theme = theme
        self.image_size = image_size
        self.event_logger = event_logger
        self.session_id = uuid.uuid4().hex[:8]

        self.game_state: Optional[GameState] = None
        self.history: List[HistoryEntry] = []
        self.chat_messages: List[ChatMessage] = []
        self.loading = False
        self.chat_loading = False
        self.error: Optional[str] = None
        self.show_key_prompt = False

        self._listeners: List[Listener] = []
        # Bumped on reset so results of calls started before it are dropped.
        self._epoch = 0

    # --- Observers ---

    def subscribe(self, listener: Listener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    def _log_event(self, event_type: str, data: dict) -> None:
        log_event(f"Session_{self.session_id}", event_type, data, logger, self.event_logger)

    # --- Derived state ---

    @property
    def phase(self) -> SessionPhase:
        if self.game_state is None:
            return SessionPhase.NOT_STARTED
        if self.game_state.is_game_over:
            return SessionPhase.ENDED
        return SessionPhase.IN_PROGRESS

    @property
    def available_choices(self) -> List[str]:
        if self.game_state is None or self.game_state.is_game_over:
            return []
        return list(self.game_state.choices)

    # --- Settings ---

    def set_theme(self, theme: AdventureTheme) -> None:
        if self.phase is not SessionPhase.NOT_STARTED or self.loading:
            raise RuntimeError("The theme can only be chosen before the adventure begins.")
        self.theme = theme
        self._notify()

    def set_image_size(self, image_size: ImageSize) -> None:
        if self.phase is not SessionPhase.NOT_STARTED or self.loading:
            raise RuntimeError("Image fidelity can only be chosen before the adventure begins.")
        self.image_size = image_size
        self._notify()

    # --- Credentials ---

    def check_api_key(self) -> bool:
        """Shows the key prompt and returns False when no usable key is selected."""
        if not self.credentials.has_selected_key():
            logger.warning("[Session] No API key selected; prompting for one.")
            self.show_key_prompt = True
            self._log_event("credential_required", {"reason": "no_key_selected"})
            self._notify()
            return False
        if self.llm.api_key != self.credentials.api_key:
            self.llm.set_api_key(self.credentials.api_key)
        return True

    def select_credential(self, api_key: str) -> None:
        """Installs a new key and hides the prompt. The action that failed is not retried."""
        self.credentials.select_key(api_key)
        self.llm.set_api_key(self.credentials.api_key)
        self.show_key_prompt = False
        self._log_event("credential_selected", {})
        self._notify()

    def dismiss_key_prompt(self) -> None:
        self.show_key_prompt = False
        self._notify()

    # --- Adventure ---

    def _handle_step_failure(self, error: Exception, message: str, operation: str) -> None:
        if isinstance(error, CredentialError):
            self.show_key_prompt = True
            self._log_event("credential_required", {"reason": str(error)})
        self.error = message
        logger.error(f"[Session] {operation} failed: {error}", exc_info=True)
        self._log_event("step_failed", {"operation": operation, "error_type": type(error).__name__, "error": str(error)})

    async def start_adventure(self) -> bool:
        """Generates the opening scene. Returns True once the adventure is in progress."""
        if self.loading or self.game_state is not None:
            return False
        if not self.check_api_key():
            return False

        epoch = self._epoch
        self.loading = True
        self.error = None
        self._notify()
        try:
            visual_style = VISUAL_STYLE_TEMPLATE.format(theme=self.theme.value)
            new_state = await generate_next_step(
                self.llm,
                self.theme.value,
                [],
                [],
                SENTINEL_ACTION,
                visual_style,
            )
            image_url = await generate_scene_image(self.llm, new_state.image_description, new_state.visual_style, self.image_size)
            if epoch != self._epoch:
                logger.info("[Session] Discarding opening scene generated before a reset.")
                return False
            self.game_state = new_state.with_image(image_url)
            self.history = [HistoryEntry(choice=OPENING_CHOICE_LABEL, story=new_state.story_text)]
            self._log_event("adventure_started", {
                "theme": self.theme.value,
                "image_size": self.image_size.value,
                "quest": new_state.current_quest,
            })
            return True
        except Exception as e:
            if epoch == self._epoch:
                self._handle_step_failure(e, START_FAILURE_MESSAGE, "start_adventure")
            return False
        finally:
            if epoch == self._epoch:
                self.loading = False
                self._notify()

    async def make_choice(self, choice: str) -> bool:
        """Advances the story with `choice`. Ignored while busy or once the adventure has ended."""
        if self.game_state is None or self.loading or self.game_state.is_game_over:
            return False

        epoch = self._epoch
        current = self.game_state
        self.loading = True
        self.error = None
        self._notify()
        try:
            new_history = [*self.history, HistoryEntry(choice=choice, story=current.story_text)]
            new_state = await generate_next_step(
                self.llm,
                self.theme.value,
                new_history,
                current.inventory,
                current.current_quest,
                current.visual_style,
            )
            image_url = await generate_scene_image(self.llm, new_state.image_description, new_state.visual_style, self.image_size)
            if epoch != self._epoch:
                logger.info("[Session] Discarding scene generated before a reset.")
                return False
            self.game_state = new_state.with_image(image_url)
            self.history = new_history
            self._log_event("choice_accepted", {
                "choice": choice,
                "turn": len(new_history),
                "is_game_over": new_state.is_game_over,
            })
            return True
        except Exception as e:
            if epoch == self._epoch:
                self._handle_step_failure(e, CHOICE_FAILURE_MESSAGE, "make_choice")
            return False
        finally:
            if epoch == self._epoch:
                self.loading = False
                self._notify()

    # --- Guide chat ---

    async def ask_guide(self, query: str) -> Optional[str]:
        """Asks the lore assistant about the current scene. Failures become an in-character reply."""
        if not query.strip() or self.chat_loading or self.game_state is None:
            return None

        epoch = self._epoch
        snapshot = self.game_state
        self.chat_messages = [*self.chat_messages, ChatMessage(role="user", content=query)]
        self.chat_loading = True
        self._notify()

        try:
            reply = await get_chat_response(self.llm, query, snapshot)
            self._log_event("guide_reply", {"query": query, "reply_chars": len(reply)})
        except Exception as e:
            logger.error(f"[Session] Guide request failed: {e}", exc_info=True)
            self._log_event("guide_failed", {"error_type": type(e).__name__, "error": str(e)})
            reply = GUIDE_FALLBACK_MESSAGE

        if epoch != self._epoch:
            return None
        self.chat_messages = [*self.chat_messages, ChatMessage(role="assistant", content=reply)]
        self.chat_loading = False
        self._notify()
        return reply

    # --- Lifecycle ---

    def reset(self) -> None:
        """Back to the title screen. Calls still in flight finish but their results are dropped."""
        self._epoch += 1
        self.game_state = None
        self.history = []
        self.chat_messages = []
        self.loading = False
        self.chat_loading = False
        self.error = None
        self._log_event("reset", {})
        self._notify()
