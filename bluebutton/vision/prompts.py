"""
Prompt templates sent to the vision model.
"""

GREETING_PROMPT = "Hello! Can you respond with a simple greeting?"

BUTTON_PROMPT = (
    "Find blue buttons or clickable blue elements.\n\n"
    "For each blue button you find, answer:\n"
    "BUTTON 1:\n"
    "Text: \"button text\"\n"
    "Position: (x, y)\n\n"
    "BUTTON 2:\n"
    "Text: \"button text\"\n"
    "Position: (x, y)"
)


def main_content_prompt(region_name: str) -> str:
    return f"Look at this {region_name} image. What is the main thing you see? Answer in one sentence."


def debug_ui_prompt(region_name: str) -> str:
    return (
        f"Analyze this {region_name} image and describe ALL visible elements, colors, and buttons. "
        "Pay special attention to:\n"
        "1. What colors do you see in buttons or clickable elements?\n"
        "2. List ALL buttons and their colors (even if not blue)\n"
        "3. Are there any elements that might be blue but you're not sure?\n"
        "4. What shades and tones are present?\n\n"
        "Be very detailed about colors and UI elements."
    )


def alternative_color_prompt(region_name: str) -> str:
    return (
        f"Look at this {region_name} image and find ALL clickable buttons or elements that have "
        "ANY of these colors or characteristics:\n"
        "- Any shade of blue (light blue, dark blue, navy, cyan, teal, azure, etc.)\n"
        "- Blue-ish colors (blue-gray, blue-green, purple-blue)\n"
        "- Elements that might be blue but appear different due to lighting\n"
        "- Buttons with blue text, blue borders, or blue highlights\n"
        "- Elements that could be considered 'blue-themed'\n\n"
        "For EACH element you find, answer:\n"
        "BUTTON 1:\n"
        "Text: \"exact text\"\n"
        "Position: (x, y)\n"
        "Appearance: what makes it blue or blue-ish\n\n"
        "Don't be strict - if there's ANY blue tint, report it!"
    )


DEBUG_SUGGESTIONS = [
    "If buttons are described but not as 'blue', they might be a different shade",
    "Try selecting a more specific region around the button",
    "The button might be using a blue that the AI doesn't recognize as 'blue'",
    "Check if the button changes color on hover/focus",
]
