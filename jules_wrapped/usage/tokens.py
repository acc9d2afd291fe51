"""Gemini token estimates: ~4 characters per token, images a flat 258."""

from __future__ import annotations

import math

CHARS_PER_TOKEN = 4
IMAGE_TOKENS = 258


def estimate_text_tokens(text: str | None) -> int:
    if not isinstance(text, str) or not text.strip():
        return 0
    return max(1, math.ceil(len(text) / CHARS_PER_TOKEN))


def estimate_image_tokens() -> int:
    return IMAGE_TOKENS
