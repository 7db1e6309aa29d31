# chronicle/prompts/illustrator_instructions.py

SCENE_IMAGE_PROMPT = "{style}. Scene: {scene}"
