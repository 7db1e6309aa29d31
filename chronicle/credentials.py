import logging
import os
from typing import Optional

from chronicle.config import API_KEY_ENV_VARS

logger = logging.getLogger(__name__)


class CredentialStore:
    """
    Tracks which Gemini API key the adventure uses.

    The key is owned by the environment (GOOGLE_API_KEY / GEMINI_API_KEY or a
    .env file). A key selected interactively only lives for this process.
    """

    def __init__(self, api_key: Optional[str] = None):
        self._selected_key = api_key.strip() if api_key else None

    @property
    def api_key(self) -> Optional[str]:
        if self._selected_key:
            return self._selected_key
        for var in API_KEY_ENV_VARS:
            value = os.getenv(var, "").strip()
            if value:
                return value
        return None

    def has_selected_key(self) -> bool:
        return self.api_key is not None

    def select_key(self, api_key: str) -> None:
        cleaned = api_key.strip()
        if not cleaned:
            raise ValueError("API key must not be empty.")
        self._selected_key = cleaned
        logger.info("[Credentials] A new API key was selected for this session.")
