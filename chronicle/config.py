# chronicle/config.py - Adventure Configuration and Constants

import os
from dotenv import load_dotenv

# Load variables from .env file at the project root
dotenv_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), '.env')
load_dotenv(dotenv_path=dotenv_path)

# --- Core API and Model Configuration ---
APP_NAME = "Chronicle"
API_KEY_ENV_VARS = ("GOOGLE_API_KEY", "GEMINI_API_KEY")
NARRATIVE_MODEL_NAME = os.getenv("NARRATIVE_MODEL_NAME", "gemini-2.5-flash-lite-latest")
IMAGE_MODEL_NAME = os.getenv("IMAGE_MODEL_NAME", "gemini-3-pro-image-preview")
GUIDE_MODEL_NAME = os.getenv("GUIDE_MODEL_NAME", "gemini-3-pro-preview")
NARRATIVE_TEMPERATURE = float(os.getenv("NARRATIVE_TEMPERATURE", 0.9))

# --- Adventure Parameters ---
DEFAULT_THEME = os.getenv("DEFAULT_THEME", "Epic High Fantasy")
DEFAULT_IMAGE_SIZE = os.getenv("DEFAULT_IMAGE_SIZE", "1K")
SENTINEL_ACTION = "Embark on a new journey." # First action of every adventure
OPENING_CHOICE_LABEL = "Beginning" # History label for the opening scene
IMAGE_ASPECT_RATIO = "16:9"
VISUAL_STYLE_TEMPLATE = (
    "High-quality cinematic concept art, {theme} theme, "
    "consistent illustrative style, detailed environments"
)
GUIDE_STORY_EXCERPT_CHARS = 200

# --- Player-facing messages ---
START_FAILURE_MESSAGE = "The chronometer failed to align. Try again."
CHOICE_FAILURE_MESSAGE = "Your path was blocked by a temporal rift. Attempt the choice again."
GUIDE_FALLBACK_MESSAGE = "Forgive me, my connection to the ether is weak. Try asking again."
CREDENTIAL_NOT_FOUND_MARKER = "Requested entity was not found"

# --- Paths ---
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
IMAGE_EXPORT_DIR = os.getenv("IMAGE_EXPORT_DIR", os.path.join(BASE_DIR, "data", "scene_images"))
LOG_DIR = os.getenv("LOG_DIR", os.path.join(BASE_DIR, "logs"))
EVENT_LOG_DIR = os.path.join(LOG_DIR, "events")
