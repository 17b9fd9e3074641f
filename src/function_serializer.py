#!/usr/bin/env python3
"""
Function-preserving serialization of values living inside the JavaScript sandbox

Functions never leave the sandbox as callables. They are replaced by an inert
descriptor carrying their source text:

    {"isFunction": true, "source": "function(event){...}"}
"""

import json
from typing import Any, Iterator, Optional

# Deep copy through JSON.stringify; a cyclic value makes it throw, failing the caller's strategy
SERIALIZE_JS = """
function (value) {
    return JSON.stringify(value, function (key, current) {
        if (typeof current === 'function') {
            return { isFunction: true, source: Function.prototype.toString.call(current) };
        }
        return current;
    });
}
"""

RESERIALIZE_JS = f"""
(value) => {{
    const serialize = {SERIALIZE_JS};
    return serialize(value);
}}
"""


def is_function_descriptor(value: Any) -> bool:
    return (
        isinstance(value, dict)
        and value.get('isFunction') is True
        and isinstance(value.get('source'), str)
    )


def decode_serialized(text: Optional[str]) -> Any:
    """Turn serializer output back into Python values (None for an undefined value)"""
    if text is None:
        return None
    return json.loads(text)


def iter_function_sources(value: Any) -> Iterator[str]:
    """Yield the source text of every function descriptor nested in a value"""
    if is_function_descriptor(value):
        yield value['source']
    elif isinstance(value, dict):
        for item in value.values():
            yield from iter_function_sources(item)
    elif isinstance(value, list):
        for item in value:
            yield from iter_function_sources(item)


async def serialize(sandbox, value: Any, timeout_ms: int = 5000) -> Any:
    """
    Run a plain value through the serializer inside the sandbox

    Values that already went through the serializer come back unchanged.
    """
    text = await sandbox.evaluate(RESERIALIZE_JS, value, timeout_ms=timeout_ms)
    return decode_serialized(text)
