"""Prompt construction for AI reminders."""

from __future__ import annotations

from remindr.reminders.models import AIContent

DEFAULT_PROMPT = "Generate a short social media post."


def build_prompt(content: AIContent) -> str:
    """Render the provider prompt from the reminder's generation parameters."""
    parts: list[str] = []
    if content.role:
        parts.append(f"You are writing as: {content.role}.")
    if content.platform:
        parts.append(f"The draft will be published on {content.platform}; follow its conventions and length limits.")
    if content.tone:
        parts.append(f"Use a {content.tone} tone.")
    parts.append(content.prompt or DEFAULT_PROMPT)
    parts.append("Return only the draft text, with no preamble.")
    return "\n\n".join(parts)
