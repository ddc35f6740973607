# Prompt assembly and reply post-processing for the adoption advisor.

from .system_prompt import (
    APOLOGY_TEXT,
    DEFAULT_SYSTEM_PROMPT,
    EMPTY_TURN_TEXT,
    FALLBACK_PERSONA,
    IMAGE_ONLY_USER_TEXT,
    build_plain_prompt,
    build_system_instruction,
    finalize_reply,
    render_preferences,
    strip_think_tags,
)

__all__ = [
    "APOLOGY_TEXT",
    "DEFAULT_SYSTEM_PROMPT",
    "EMPTY_TURN_TEXT",
    "FALLBACK_PERSONA",
    "IMAGE_ONLY_USER_TEXT",
    "build_plain_prompt",
    "build_system_instruction",
    "finalize_reply",
    "render_preferences",
    "strip_think_tags",
]
