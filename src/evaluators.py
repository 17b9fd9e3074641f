#!/usr/bin/env python3
"""
Sandboxed evaluation of Launch script text

ObjectLiteralEvaluator evaluates a single object literal cut out of a script.
ScriptEvaluator runs a whole script against inert stand-ins for the browser globals
and reads back window._satellite.container.

Both resolve every identifier through a scope Proxy: bound names come from the
stand-in object, ECMAScript built-ins from an allow-list, everything else is undefined.
"""

from typing import Any, Dict, Optional

from function_serializer import SERIALIZE_JS, decode_serialized
from logging_setup import setup_logger


SANDBOX_HELPERS_JS = """
    const serialize = __SERIALIZE__;
    const BUILTINS = new Set([
        'Object', 'Array', 'String', 'Number', 'Boolean', 'Symbol', 'BigInt', 'Math', 'JSON',
        'Date', 'RegExp', 'Error', 'TypeError', 'RangeError', 'SyntaxError', 'ReferenceError',
        'EvalError', 'URIError', 'Map', 'Set', 'WeakMap', 'WeakSet', 'Promise', 'Reflect',
        'ArrayBuffer', 'DataView', 'Uint8Array', 'Int8Array', 'Uint16Array', 'Int16Array',
        'Uint32Array', 'Int32Array', 'Float32Array', 'Float64Array',
        'parseInt', 'parseFloat', 'isNaN', 'isFinite', 'encodeURIComponent',
        'decodeURIComponent', 'encodeURI', 'decodeURI', 'escape', 'unescape',
        'Infinity', 'NaN'
    ]);
    const createScope = (bindings) => new Proxy(bindings, {
        has(target, key) {
            return typeof key === 'string' && !key.startsWith('__sandbox');
        },
        get(target, key) {
            if (key === Symbol.unscopables) {
                return undefined;
            }
            if (Object.prototype.hasOwnProperty.call(target, key)) {
                return target[key];
            }
            return BUILTINS.has(key) ? globalThis[key] : undefined;
        },
        set(target, key, value) {
            target[key] = value;
            return true;
        },
        deleteProperty(target, key) {
            delete target[key];
            return true;
        }
    });
""".replace('__SERIALIZE__', SERIALIZE_JS.strip())

LITERAL_EVALUATION_JS = """
({ source }) => {
__HELPERS__
    const bindings = { window: {}, _satellite: {}, undefined: undefined };
    const run = new Function(
        '__sandboxScope',
        'with (__sandboxScope) { return (\\n' + source + '\\n); }'
    );
    return serialize(run(createScope(bindings)));
}
""".replace('__HELPERS__', SANDBOX_HELPERS_JS)

SCRIPT_EXECUTION_JS = """
({ source }) => {
__HELPERS__
    const noop = function () {};
    const quiet = { log: noop, info: noop, warn: noop, error: noop, debug: noop, trace: noop };
    const host = {
        _satellite: {},
        console: quiet,
        document: {},
        navigator: {},
        location: {},
        setTimeout: noop,
        setInterval: noop,
        clearTimeout: noop,
        clearInterval: noop,
        requestAnimationFrame: noop,
        cancelAnimationFrame: noop,
        undefined: undefined
    };
    host.window = host;
    host.self = host;
    host.top = host;
    host.parent = host;
    host.globalThis = host;

    // top-level declarations are locals of the wrapper; capture them before it returns
    const locals = {};
    const capture = (win, satellite) => {
        locals.window = win;
        locals._satellite = satellite;
    };
    const run = new Function(
        '__sandboxScope',
        '__sandboxThis',
        '__sandboxCapture',
        'with (__sandboxScope) { (function () {\\n' + source + '\\n;\\n'
            + '__sandboxCapture('
            + 'typeof window !== "undefined" ? window : undefined, '
            + 'typeof _satellite !== "undefined" ? _satellite : undefined);\\n'
            + '}).call(__sandboxThis); }'
    );
    run(createScope(host), host, capture);

    const fromWindow = (win) => win && win._satellite && win._satellite.container;
    const fromSatellite = (satellite) => satellite && satellite.container;
    const container = fromWindow(host.window)
        || fromWindow(locals.window)
        || fromSatellite(locals._satellite)
        || fromSatellite(host._satellite);
    return container ? serialize(container) : null;
}
""".replace('__HELPERS__', SANDBOX_HELPERS_JS)


class ObjectLiteralEvaluator:
    """Evaluates a self-contained object literal with only inert placeholders in scope"""

    def __init__(self, sandbox, timeout_ms: int = 5000, debug_mode: bool = True):
        self.sandbox = sandbox
        self.timeout_ms = timeout_ms
        self.logger = setup_logger('ObjectLiteralEvaluator', debug_mode)

    async def evaluate(self, literal_text: str) -> Optional[Any]:
        """
        Evaluate an object literal

        Returns:
            The structured value with functions as descriptors, or None on any failure
        """
        if not isinstance(literal_text, str) or not literal_text.strip():
            return None

        try:
            text = await self.sandbox.evaluate(
                LITERAL_EVALUATION_JS,
                {'source': literal_text},
                timeout_ms=self.timeout_ms
            )
            return decode_serialized(text)
        except Exception as e:
            self.logger.debug(f"Safe eval failed: {e}")
            return None


class ScriptEvaluator:
    """Executes an entire script against stand-in globals and reads the container back"""

    def __init__(self, sandbox, timeout_ms: int = 10000, debug_mode: bool = True):
        self.sandbox = sandbox
        self.timeout_ms = timeout_ms
        self.logger = setup_logger('ScriptEvaluator', debug_mode)

    async def run(self, script_text: str) -> Optional[Dict[str, Any]]:
        """
        Run a script in the sandbox

        Returns:
            The serialized container, or None when execution fails or sets no container
        """
        if not isinstance(script_text, str) or not script_text.strip():
            return None

        try:
            text = await self.sandbox.evaluate(
                SCRIPT_EXECUTION_JS,
                {'source': script_text},
                timeout_ms=self.timeout_ms
            )
            return decode_serialized(text)
        except Exception as e:
            self.logger.debug(f"Sandbox execution failed: {e}")
            return None
