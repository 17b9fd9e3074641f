#!/usr/bin/env python3
"""
Container Extractor - recovers the _satellite.container object from Launch script text

Strategies, first success wins:
    1. Run the whole script in the sandbox and read the container back
    2. Cut out the literal assigned at window._satellite.container = {...}
    3. Same for the unqualified _satellite.container = {...}
"""

import re
from typing import Any, Dict, List, Optional

from balancer import find_balanced_span
from errors import NotFoundError
from logging_setup import setup_logger


PRIMARY_MARKER = re.compile(r'window\._satellite\.container\s*=\s*\{')
SECONDARY_MARKER = re.compile(r'_satellite\.container\s*=\s*\{')

METADATA_KEYS = ('buildInfo', 'property', 'company', 'environment')


def normalize_rules(rules: Any) -> List[Any]:
    """Rules arrive either as an array or as an id-keyed object; always hand back a list"""
    if isinstance(rules, list):
        return list(rules)
    if isinstance(rules, dict):
        return list(rules.values())
    return []


def normalize_container(raw: Dict[str, Any]) -> Dict[str, Any]:
    """
    Bring a raw container into canonical shape

    Unknown keys are kept. rules is always a list, dataElements and extensions are
    always dicts (anything else becomes empty) and the metadata keys are always
    present (None when absent).
    """
    container = dict(raw)
    container['rules'] = normalize_rules(raw.get('rules'))
    for key in ('dataElements', 'extensions'):
        value = raw.get(key)
        container[key] = value if isinstance(value, dict) else {}
    for key in METADATA_KEYS:
        container[key] = raw.get(key) or None
    return container


class ContainerExtractor:
    """Runs the extraction strategy chain over a fetched script"""

    def __init__(self, script_evaluator, literal_evaluator, debug_mode: bool = True):
        self.script_evaluator = script_evaluator
        self.literal_evaluator = literal_evaluator
        self.logger = setup_logger('ContainerExtractor', debug_mode)

    async def extract(self, script_text: str, url: Optional[str] = None) -> Dict[str, Any]:
        """
        Extract and normalize the container

        Raises:
            NotFoundError: when no strategy produced a container
        """
        raw = await self.extract_container(script_text)
        if raw is None:
            raise NotFoundError(url=url)
        return normalize_container(raw)

    async def extract_container(self, script_text: str) -> Optional[Dict[str, Any]]:
        """Return the raw container from the first successful strategy, or None"""
        result = await self.script_evaluator.run(script_text)
        if isinstance(result, dict):
            self.logger.debug(" Container recovered by sandboxed script execution")
            return result

        for name, pattern in (('primary', PRIMARY_MARKER), ('secondary', SECONDARY_MARKER)):
            result = await self._extract_from_marker(script_text, pattern)
            if isinstance(result, dict):
                self.logger.debug(f" Container recovered from {name} assignment marker")
                return result

        self.logger.debug(" No extraction strategy found a container")
        return None

    async def _extract_from_marker(self, script_text: str, pattern: re.Pattern) -> Optional[Any]:
        match = pattern.search(script_text)
        if not match:
            return None

        # the match ends on the literal's opening brace
        start_index = match.end() - 1
        literal = find_balanced_span(script_text, start_index)
        if literal is None:
            self.logger.debug(f" Unbalanced container literal at offset {start_index}")
            return None

        return await self.literal_evaluator.evaluate(literal)
