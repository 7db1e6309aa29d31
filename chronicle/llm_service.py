import asyncio
import logging
from typing import Any, Callable, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError
# Google Generative AI API
from google import genai
from google.genai import types

from chronicle.config import CREDENTIAL_NOT_FOUND_MARKER, GUIDE_MODEL_NAME, IMAGE_MODEL_NAME, NARRATIVE_MODEL_NAME
from chronicle.exceptions import CredentialError, ResponseFormatError

logger = logging.getLogger(__name__)

T = TypeVar('T', bound=BaseModel)


class LLMService:
    """Centralized service for Gemini interactions."""

    def __init__(self, api_key: Optional[str] = None, client: Any = None):
        self.api_key = api_key
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            if not self.api_key:
                raise CredentialError("No Gemini API key has been selected.")
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    def set_api_key(self, api_key: str) -> None:
        """Swap credentials; the client is rebuilt on next use."""
        self.api_key = api_key
        self._client = None

    async def _call(self, fn: Callable[[], Any], operation: str) -> Any:
        # The SDK call blocks, keep it off the event loop
        try:
            return await asyncio.to_thread(fn)
        except CredentialError:
            raise
        except Exception as e:
            if CREDENTIAL_NOT_FOUND_MARKER in str(e):
                logger.warning(f"[LLMService] {operation} rejected the selected API key: {e}")
                raise CredentialError(str(e)) from e
            logger.error(f"[LLMService] {operation} failed: {e}")
            raise

    async def generate_structured(self,
                                  prompt: str,
                                  response_model: Type[T],
                                  response_schema: Any = None,
                                  model_name: str = NARRATIVE_MODEL_NAME,
                                  temperature: float = 0.7) -> T:
        """Generate JSON constrained to a schema and validate it into `response_model`."""
        config = types.GenerateContentConfig(
            temperature=temperature,
            response_mime_type='application/json',
            response_schema=response_schema if response_schema is not None else response_model,
        )
        response = await self._call(
            lambda: self.client.models.generate_content(model=model_name, contents=prompt, config=config),
            "Structured generation",
        )

        response_text = (response.text or "").strip()
        if not response_text:
            raise ResponseFormatError("Structured generation returned an empty response.")
        try:
            return response_model.model_validate_json(response_text)
        except ValidationError as e:
            logger.error(f"[LLMService] Response failed {response_model.__name__} validation: {e}. Raw: '{response_text[:200]}...'")
            raise ResponseFormatError(f"Response does not match {response_model.__name__}: {e}", raw_response=response_text) from e

    async def generate_image_parts(self,
                                   prompt: str,
                                   aspect_ratio: str,
                                   image_size: str,
                                   model_name: str = IMAGE_MODEL_NAME) -> List[Any]:
        """Request one image and return the content parts of the first candidate."""
        config = types.GenerateContentConfig(
            image_config=types.ImageConfig(aspect_ratio=aspect_ratio, image_size=image_size),
        )
        response = await self._call(
            lambda: self.client.models.generate_content(
                model=model_name,
                contents=[types.Part.from_text(text=prompt)],
                config=config,
            ),
            "Image generation",
        )
        if not response.candidates:
            return []
        content = response.candidates[0].content
        if content is None or not content.parts:
            return []
        return list(content.parts)

    async def chat(self,
                   message: str,
                   system_instruction: str,
                   model_name: str = GUIDE_MODEL_NAME) -> str:
        """Open a fresh chat with `system_instruction` and send a single message."""
        def _send():
            chat = self.client.chats.create(
                model=model_name,
                config=types.GenerateContentConfig(system_instruction=system_instruction),
            )
            return chat.send_message(message)

        response = await self._call(_send, "Conversational generation")
        return response.text or ""
