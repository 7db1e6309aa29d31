from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# --- Adventure Settings ---

class AdventureTheme(str, Enum):
    FANTASY = "Epic High Fantasy"
    CYBERPUNK = "Gritty Cyberpunk"
    HORROR = "Gothic Horror"
    SPACE = "Sci-Fi Space Opera"

    @classmethod
    def from_string(cls, value: str) -> "AdventureTheme":
        """Accepts the display value ("Gothic Horror") or the member name ("horror")."""
        cleaned = value.strip()
        for theme in cls:
            if cleaned.lower() in (theme.value.lower(), theme.name.lower()):
                return theme
        raise ValueError(f"Unknown adventure theme: {value!r}")


class ImageSize(str, Enum):
    """Resolution tier of the scene illustration, valued by the requested output size."""
    LOW = "1K"
    MEDIUM = "2K"
    HIGH = "4K"

    @classmethod
    def parse(cls, value: str) -> "ImageSize":
        """Accepts a tier name ("high") or a size label ("4K")."""
        cleaned = value.strip()
        for size in cls:
            if cleaned.upper() == size.value or cleaned.upper() == size.name:
                return size
        raise ValueError(f"Unknown image size: {value!r}. Use one of low/medium/high or 1K/2K/4K.")


class SessionPhase(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    ENDED = "ended"


# --- Story Structures ---

class StoryStep(BaseModel):
    """Exact shape the narrative model must answer with. camelCase keys only, no coercion, no extra keys."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        strict=True,
        extra='forbid',
    )

    story_text: str
    choices: List[str]
    inventory: List[str]
    current_quest: str
    image_description: str
    is_game_over: bool

    def to_game_state(self, visual_style: str) -> "GameState":
        return GameState(
            story_text=self.story_text,
            choices=list(self.choices),
            inventory=list(self.inventory),
            current_quest=self.current_quest,
            image_description=self.image_description,
            visual_style=visual_style,
            is_game_over=self.is_game_over,
        )


class GameState(BaseModel):
    """Complete snapshot of the current scene. Replaced wholesale, never patched."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    story_text: str
    choices: List[str] = Field(default_factory=list)
    inventory: List[str] = Field(default_factory=list)
    current_quest: str = ""
    image_description: str = ""
    image_url: Optional[str] = None
    visual_style: str
    is_game_over: bool = False

    def with_image(self, image_url: str) -> "GameState":
        return self.model_copy(update={"image_url": image_url})


class HistoryEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    choice: str
    story: str


class ChatMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Literal["user", "assistant"]
    content: str
