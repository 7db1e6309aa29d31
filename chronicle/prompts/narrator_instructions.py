# chronicle/prompts/narrator_instructions.py

STORY_STEP_PROMPT = """
Theme: {theme}
Visual Style for consistency: {visual_style}
Current Inventory: {inventory}
Current Quest: {quest}

Recent History:
{history}

Player's Last Action: {last_action}

Continue the story based on the player's last action.
Respond ONLY in JSON format following this schema:
{{
  "storyText": "The narrative text for the current scene.",
  "choices": ["Choice 1", "Choice 2", "Choice 3"],
  "inventory": ["Updated", "Inventory", "List"],
  "currentQuest": "Updated quest description",
  "imageDescription": "A concise visual prompt for this specific scene, respecting the visual style.",
  "isGameOver": false
}}
"""

HISTORY_ENTRY_TEMPLATE = "Action: {choice}\nStory: {story}"
