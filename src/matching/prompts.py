"""Prompt for the AI project-matching layer."""

from __future__ import annotations

AI_MATCH_TEXT_LIMIT = 500

AI_MATCH_SYSTEM_PROMPT = (
    "You sort a founder's captured notes into projects. "
    'Reply with ONLY the project name, or "none" if unclear.'
)


def build_ai_match_prompt(text: str, project_names: list[str]) -> tuple[str, str]:
    """Return (system, user) prompts asking which project ``text`` belongs to."""
    user_prompt = (
        "Which project does this note most likely belong to?\n"
        f"Projects: {', '.join(project_names)}\n"
        f'Note: "{text}"\n\n'
        'Reply with ONLY the project name, or "none" if unclear.'
    )
    return AI_MATCH_SYSTEM_PROMPT, user_prompt
