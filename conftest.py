"""Shared fixtures: a stand-in Gemini client that answers from queued responses."""

import json
from typing import Any, Dict, List
from unittest.mock import MagicMock

import pytest
from google.genai import types

from chronicle.credentials import CredentialStore
from chronicle.llm_service import LLMService
from chronicle.session import AdventureSession

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-image-bytes"


def story_payload(**overrides: Any) -> Dict[str, Any]:
    payload = {
        "storyText": "Rain hisses on the neon sign above the noodle bar.",
        "choices": ["Follow the courier", "Order noodles", "Hack the sign"],
        "inventory": ["Cred stick"],
        "currentQuest": "Find the missing courier",
        "imageDescription": "A rain-soaked neon alley at night",
        "isGameOver": False,
    }
    payload.update(overrides)
    return payload


def text_response(text: str) -> types.GenerateContentResponse:
    return types.GenerateContentResponse(
        candidates=[types.Candidate(content=types.Content(role="model", parts=[types.Part(text=text)]))]
    )


def story_response(**overrides: Any) -> types.GenerateContentResponse:
    return text_response(json.dumps(story_payload(**overrides)))


def image_response(parts: List[types.Part]) -> types.GenerateContentResponse:
    return types.GenerateContentResponse(
        candidates=[types.Candidate(content=types.Content(role="model", parts=parts))]
    )


def inline_image_part(data: bytes = PNG_BYTES, mime_type: str = "image/png") -> types.Part:
    return types.Part(inline_data=types.Blob(data=data, mime_type=mime_type))


class FakeGenaiClient:
    """
    Mimics `genai.Client` for `models.generate_content` and `chats.create`.

    Story and image responses are queued separately; an Exception in a queue is raised
    instead of returned. The last item of a queue is reused once the others are consumed.
    """

    def __init__(self):
        self.story_queue: List[Any] = [story_response()]
        self.image_queue: List[Any] = [image_response([inline_image_part()])]
        self.models = MagicMock()
        self.models.generate_content.side_effect = self._generate_content
        self.chats = MagicMock()
        self.chats.create.return_value.send_message.return_value = MagicMock(text="The courier was last seen near the docks.")

    @staticmethod
    def _next(queue: List[Any]) -> Any:
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, Exception):
            raise item
        return item

    def _generate_content(self, model, contents, config):
        if config is not None and config.image_config is not None:
            return self._next(self.image_queue)
        return self._next(self.story_queue)

    def calls(self, kind: str) -> List[Any]:
        """kind is 'story' or 'image'."""
        calls = []
        for call in self.models.generate_content.call_args_list:
            is_image = call.kwargs["config"].image_config is not None
            if (kind == "image") == is_image:
                calls.append(call)
        return calls


@pytest.fixture
def fake_client():
    return FakeGenaiClient()


@pytest.fixture
def llm(fake_client):
    return LLMService(api_key="test-key", client=fake_client)


@pytest.fixture
def credentials():
    return CredentialStore(api_key="test-key")


@pytest.fixture
def session(llm, credentials):
    return AdventureSession(llm=llm, credentials=credentials)
