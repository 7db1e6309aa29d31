"""Tests for the narrator, illustrator and lore assistant."""

import base64
import json
from io import BytesIO

import pytest
from google.genai import types
from PIL import Image

from chronicle.agents.illustrator import (
    build_image_prompt,
    decode_data_uri,
    first_inline_image,
    generate_scene_image,
    save_scene_image,
)
from chronicle.agents.lore_assistant import build_guide_instruction, get_chat_response
from chronicle.agents.narrator import (
    STORY_STEP_REQUIRED_FIELDS,
    STORY_STEP_SCHEMA,
    build_story_prompt,
    generate_next_step,
)
from chronicle.exceptions import ChronicleError, MissingImageDataError, ResponseFormatError
from chronicle.models import GameState, HistoryEntry, ImageSize
from conftest import PNG_BYTES, image_response, inline_image_part, story_response, text_response

pytestmark = pytest.mark.unit


# =============================================================================
# Narrator
# =============================================================================

class TestNarrator:

    def test_fresh_adventure_prompt_uses_sentinel_action(self):
        prompt = build_story_prompt("Gritty Cyberpunk", [], [], "Embark on a new journey.", "neon art")

        assert "Theme: Gritty Cyberpunk" in prompt
        assert "Visual Style for consistency: neon art" in prompt
        assert "Player's Last Action: Embark on a new journey." in prompt

    def test_prompt_lists_history_inventory_and_last_choice(self):
        history = [
            HistoryEntry(choice="Beginning", story="You wake in an alley."),
            HistoryEntry(choice="Climb the fire escape", story="The roof is slick."),
        ]
        prompt = build_story_prompt("Gritty Cyberpunk", history, ["Cred stick", "Knife"], "Escape", "neon art")

        assert "Current Inventory: Cred stick, Knife" in prompt
        assert "Current Quest: Escape" in prompt
        assert "Action: Beginning\nStory: You wake in an alley.\n\nAction: Climb the fire escape" in prompt
        assert "Player's Last Action: Climb the fire escape" in prompt

    def test_schema_requires_every_field(self):
        assert set(STORY_STEP_SCHEMA.required) == set(STORY_STEP_REQUIRED_FIELDS)
        assert set(STORY_STEP_SCHEMA.properties) == set(STORY_STEP_REQUIRED_FIELDS)

    @pytest.mark.asyncio
    async def test_generate_next_step_returns_state_with_style(self, llm, fake_client):
        state = await generate_next_step(llm, "Gritty Cyberpunk", [], [], "Embark on a new journey.", "neon art")

        assert isinstance(state, GameState)
        assert state.visual_style == "neon art"
        assert state.image_url is None
        config = fake_client.models.generate_content.call_args.kwargs["config"]
        assert config.response_mime_type == "application/json"
        assert config.response_schema is STORY_STEP_SCHEMA

    @pytest.mark.asyncio
    async def test_generate_next_step_rejects_partial_payload(self, llm, fake_client):
        fake_client.story_queue = [story_response(storyText=None)]

        with pytest.raises(ResponseFormatError):
            await generate_next_step(llm, "Gothic Horror", [], [], "Embark on a new journey.", "ink")

    @pytest.mark.asyncio
    async def test_generate_next_step_rejects_snake_case_payload(self, llm, fake_client):
        fake_client.story_queue = [text_response(json.dumps({
            "story_text": "A door.",
            "choices": ["Open"],
            "inventory": [],
            "current_quest": "Leave",
            "image_description": "a door",
            "is_game_over": False,
        }))]

        with pytest.raises(ResponseFormatError):
            await generate_next_step(llm, "Gothic Horror", [], [], "Embark on a new journey.", "ink")
        assert fake_client.calls("image") == []


# =============================================================================
# Illustrator
# =============================================================================

class TestIllustrator:

    def test_prompt_puts_style_before_scene(self):
        assert build_image_prompt("a ruined chapel", "Gothic oil painting") == "Gothic oil painting. Scene: a ruined chapel"

    @pytest.mark.asyncio
    async def test_returns_data_uri_of_first_inline_part(self, llm, fake_client):
        fake_client.image_queue = [image_response([
            types.Part(text="Here is your scene."),
            inline_image_part(PNG_BYTES),
            inline_image_part(b"second", "image/jpeg"),
        ])]

        uri = await generate_scene_image(llm, "a ruined chapel", "oil painting", ImageSize.HIGH)

        assert uri == "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode("utf-8")
        call = fake_client.calls("image")[0]
        assert call.kwargs["config"].image_config.aspect_ratio == "16:9"
        assert call.kwargs["config"].image_config.image_size == "4K"
        assert call.kwargs["contents"][0].text == "oil painting. Scene: a ruined chapel"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("parts", [
        [],
        [types.Part(text="I cannot draw that.")],
    ])
    async def test_missing_inline_data_raises(self, llm, fake_client, parts):
        fake_client.image_queue = [image_response(parts)]

        with pytest.raises(MissingImageDataError, match="No image data"):
            await generate_scene_image(llm, "a ruined chapel", "oil painting")

    @pytest.mark.asyncio
    async def test_no_candidates_raises(self, llm, fake_client):
        fake_client.image_queue = [types.GenerateContentResponse(candidates=[])]

        with pytest.raises(MissingImageDataError):
            await generate_scene_image(llm, "a ruined chapel", "oil painting")

    def test_first_inline_image_defaults_mime(self):
        part = types.Part(inline_data=types.Blob(data=b"xyz"))

        assert first_inline_image([part]).startswith("data:image/png;base64,")

    def test_decode_data_uri(self):
        mime, data = decode_data_uri("data:image/jpeg;base64," + base64.b64encode(b"jpeg!").decode())

        assert mime == "image/jpeg"
        assert data == b"jpeg!"

    @pytest.mark.parametrize("uri", ["https://example.com/a.png", "data:image/png;base64,@@@"])
    def test_decode_data_uri_rejects_bad_input(self, uri):
        with pytest.raises(ValueError):
            decode_data_uri(uri)

    def test_save_scene_image_writes_png(self, tmp_path):
        buffer = BytesIO()
        Image.new("RGB", (16, 9), color=(200, 30, 30)).save(buffer, format="JPEG")
        uri = "data:image/jpeg;base64," + base64.b64encode(buffer.getvalue()).decode()

        path = save_scene_image(uri, str(tmp_path / "scenes"), "scene_01")

        assert path.name == "scene_01.png"
        with Image.open(path) as saved:
            assert saved.format == "PNG"
            assert saved.size == (16, 9)


# =============================================================================
# Lore assistant
# =============================================================================

class TestLoreAssistant:

    @pytest.fixture
    def game_state(self):
        return GameState(
            story_text="x" * 250,
            choices=["Wait"],
            inventory=["Lantern", "Silver key"],
            current_quest="Lift the curse",
            visual_style="ink",
        )

    def test_instruction_embeds_quest_inventory_and_excerpt(self, game_state):
        instruction = build_guide_instruction(game_state)

        assert "Quest: Lift the curse" in instruction
        assert "Inventory: Lantern, Silver key" in instruction
        assert f"Last Story Beat: {'x' * 200}..." in instruction
        assert "x" * 201 not in instruction

    @pytest.mark.asyncio
    async def test_sends_only_the_query(self, llm, fake_client, game_state):
        reply = await get_chat_response(llm, "What does the key open?", game_state)

        assert reply == "The courier was last seen near the docks."
        chat = fake_client.chats.create.return_value
        chat.send_message.assert_called_once_with("What does the key open?")
        system_instruction = fake_client.chats.create.call_args.kwargs["config"].system_instruction
        assert "Lift the curse" in system_instruction

    @pytest.mark.asyncio
    async def test_empty_reply_is_an_error(self, llm, fake_client, game_state):
        fake_client.chats.create.return_value.send_message.return_value.text = "   "

        with pytest.raises(ChronicleError):
            await get_chat_response(llm, "Hello?", game_state)
