#!/usr/bin/env python3
"""
Quote-aware brace matching for object literals embedded in minified script text
"""

from typing import Optional

QUOTE_CHARS = ('"', "'", '`')


def find_balanced_span(text: str, start_index: int) -> Optional[str]:
    """
    Return the substring from an opening brace through its matching closing brace

    Braces inside single, double or backtick quoted literals are ignored. A backslash
    escapes exactly the next character, so an escaped quote never toggles quote state.

    Args:
        text: Script text to scan
        start_index: Offset of the opening brace

    Returns:
        The balanced span including both braces, or None when the text ends first
    """
    if start_index < 0 or start_index >= len(text) or text[start_index] != '{':
        return None

    depth = 0
    quote_char = None
    escaped = False

    for i in range(start_index, len(text)):
        char = text[i]

        if escaped:
            escaped = False
            continue

        if char == '\\':
            escaped = True
            continue

        if char in QUOTE_CHARS:
            if quote_char is None:
                quote_char = char
            elif char == quote_char:
                quote_char = None
            continue

        if quote_char is not None:
            continue

        if char == '{':
            depth += 1
        elif char == '}':
            depth -= 1
            if depth == 0:
                return text[start_index:i + 1]

    return None
