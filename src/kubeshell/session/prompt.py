"""Prompt rendering from session state."""

from __future__ import annotations

from prompt_toolkit.formatted_text import FormattedText

from kubeshell.session.kinds import PROMPT_STYLES
from kubeshell.session.selection import SelectedObject

NONE_LABEL = "none"


def render_prompt(cluster: str | None, namespace: str | None, selected: SelectedObject) -> str:
    """Plain-text prompt: ``[cluster] [namespace] [object] > ``."""
    return (
        f"[{cluster or NONE_LABEL}] [{namespace or NONE_LABEL}] [{selected.label}] > "
    )


def prompt_fragments(
    cluster: str | None, namespace: str | None, selected: SelectedObject
) -> FormattedText:
    """Styled prompt for prompt_toolkit; set values are bold."""
    object_style = PROMPT_STYLES[selected.kind] if selected.kind is not None else "ansiyellow"
    return FormattedText(
        [
            ("", "["),
            ("ansired bold" if cluster else "ansired", cluster or NONE_LABEL),
            ("", "] ["),
            ("ansigreen bold" if namespace else "ansigreen", namespace or NONE_LABEL),
            ("", "] ["),
            (object_style, selected.label),
            ("", "] > "),
        ]
    )
