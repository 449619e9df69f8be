"""PromptShelf - A personal prompt library with built-in prompt analysis.

Organize prompts into projects and categories, tag, favorite and search
them, and get heuristic suggestions to improve them -- all locally,
without an API key.
"""

__version__ = "0.1.0"
