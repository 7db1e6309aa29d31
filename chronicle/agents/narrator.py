# chronicle/agents/narrator.py

import logging
from typing import List, Sequence

from google.genai import types

from chronicle.config import NARRATIVE_MODEL_NAME, NARRATIVE_TEMPERATURE, SENTINEL_ACTION
from chronicle.llm_service import LLMService
from chronicle.models import GameState, HistoryEntry, StoryStep
from chronicle.prompts.narrator_instructions import HISTORY_ENTRY_TEMPLATE, STORY_STEP_PROMPT

logger = logging.getLogger(__name__)

STORY_STEP_REQUIRED_FIELDS = ["storyText", "choices", "inventory", "currentQuest", "imageDescription", "isGameOver"]

# Sent to the model as the response schema. StoryStep re-checks the answer on return.
STORY_STEP_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "storyText": types.Schema(type=types.Type.STRING),
        "choices": types.Schema(type=types.Type.ARRAY, items=types.Schema(type=types.Type.STRING)),
        "inventory": types.Schema(type=types.Type.ARRAY, items=types.Schema(type=types.Type.STRING)),
        "currentQuest": types.Schema(type=types.Type.STRING),
        "imageDescription": types.Schema(type=types.Type.STRING),
        "isGameOver": types.Schema(type=types.Type.BOOLEAN),
    },
    required=STORY_STEP_REQUIRED_FIELDS,
)


def format_history(history: Sequence[HistoryEntry]) -> str:
    return "\n\n".join(HISTORY_ENTRY_TEMPLATE.format(choice=h.choice, story=h.story) for h in history)


def last_action(history: Sequence[HistoryEntry]) -> str:
    """The choice that led to the scene being generated, or the sentinel on a fresh adventure."""
    return history[-1].choice if history else SENTINEL_ACTION


def build_story_prompt(
    theme: str,
    history: Sequence[HistoryEntry],
    current_inventory: List[str],
    current_quest: str,
    visual_style: str,
) -> str:
    return STORY_STEP_PROMPT.format(
        theme=theme,
        visual_style=visual_style,
        inventory=", ".join(current_inventory),
        quest=current_quest,
        history=format_history(history),
        last_action=last_action(history),
    )


async def generate_next_step(
    llm: LLMService,
    theme: str,
    history: Sequence[HistoryEntry],
    current_inventory: List[str],
    current_quest: str,
    visual_style: str,
) -> GameState:
    """
    Generates the next story beat as a fresh GameState (without an image).

    Raises:
        ResponseFormatError: the model answered with anything other than a complete StoryStep.
        CredentialError: the API rejected the selected key.
    """
    prompt = build_story_prompt(theme, history, current_inventory, current_quest, visual_style)
    logger.debug(f"[Narrator] Requesting story step (history={len(history)}, action='{last_action(history)}').")

    step = await llm.generate_structured(
        prompt=prompt,
        response_model=StoryStep,
        response_schema=STORY_STEP_SCHEMA,
        model_name=NARRATIVE_MODEL_NAME,
        temperature=NARRATIVE_TEMPERATURE,
    )
    logger.info(f"[Narrator] Story step received: {len(step.choices)} choices, game over={step.is_game_over}.")
    return step.to_game_state(visual_style)
