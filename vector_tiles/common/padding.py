"""Zero padding for fixed-width scene codes."""

from __future__ import annotations


def pad(value: object, width: int) -> str:
    text = str(value)
    while len(text) < width:
        text = f"0{text}"
    return text
