# chronicle/agents/lore_assistant.py

import logging

from chronicle.config import GUIDE_MODEL_NAME, GUIDE_STORY_EXCERPT_CHARS
from chronicle.exceptions import ChronicleError
from chronicle.llm_service import LLMService
from chronicle.models import GameState
from chronicle.prompts.guide_instructions import GUIDE_SYSTEM_INSTRUCTION

logger = logging.getLogger(__name__)


def build_guide_instruction(game_state: GameState) -> str:
    return GUIDE_SYSTEM_INSTRUCTION.format(
        quest=game_state.current_quest,
        inventory=", ".join(game_state.inventory),
        story_excerpt=game_state.story_text[:GUIDE_STORY_EXCERPT_CHARS],
    )


async def get_chat_response(llm: LLMService, query: str, game_state: GameState) -> str:
    """
    Answers a lore question from the current GameState alone.

    Only `query` is sent; earlier guide turns are not replayed to the model.
    """
    reply = await llm.chat(
        message=query,
        system_instruction=build_guide_instruction(game_state),
        model_name=GUIDE_MODEL_NAME,
    )
    if not reply.strip():
        raise ChronicleError("The guide returned an empty reply.")
    return reply
