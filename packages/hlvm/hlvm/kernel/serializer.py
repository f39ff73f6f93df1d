"""Kernel — Value serializer.

Converts namespace values to ``(payload, type)`` pairs for the
``custom_properties`` table and back.

Two kinds of values are supported:

* JSON-compatible data (dict, list, str, int, float, bool) is stored as
  ``json.dumps`` text with the Python type name as the tag.
* Plain functions (``def``, ``async def``, ``lambda``) are stored as their own
  source text with the tag ``"function"``.

Persist callable, no closure capture
------------------------------------
A function is revived by compiling its source text against the execution
scope's globals (builtins, the namespace root and the installed shortcuts).
Anything the function captured from an enclosing scope at definition time
(closure cells, default values computed from locals, the defining module's
globals) is **not** restored.  Functions that must survive a restart should
reach everything they need through the namespace root or their arguments.
"""

from __future__ import annotations

import ast
import builtins
import inspect
import json
import linecache
import re
import textwrap
import types
from dataclasses import dataclass
from typing import Any, Callable

from hlvm.exceptions import DeserializationError, SerializationError

FUNCTION_TYPE = "function"

# Functions typed at an interactive prompt have no file behind them; the shell
# stores the text it compiled under this attribute.
SOURCE_ATTR = "__hlvm_source__"

_LAMBDA_RE = re.compile(r"\blambda\b")


@dataclass(frozen=True)
class SerializedValue:
    payload: str
    type: str


def type_tag(value: Any) -> str:
    """Return the tag stored next to *value*'s payload."""
    if isinstance(value, types.FunctionType):
        return FUNCTION_TYPE
    return type(value).__name__


def serialize(value: Any, key: str = "<value>") -> SerializedValue:
    """Serialize *value* for storage.

    ``None`` is never serialized: callers delete the row instead.

    Raises:
        ValueError:         *value* is ``None``.
        SerializationError: the value is neither JSON data nor a plain function
                            with recoverable source text.
    """
    if value is None:
        raise ValueError("None is not serialized; delete the row instead")

    if isinstance(value, types.FunctionType):
        return SerializedValue(payload=function_source(value, key), type=FUNCTION_TYPE)

    if callable(value):
        raise SerializationError(
            key, f"only plain functions can be persisted, got {type(value).__name__}"
        )

    try:
        payload = json.dumps(value)
    except (TypeError, ValueError) as exc:
        raise SerializationError(key, f"value is not JSON-serializable: {exc}") from exc
    return SerializedValue(payload=payload, type=type_tag(value))


def deserialize(
    payload: str,
    type: str,
    key: str = "<value>",
    scope_globals: dict[str, Any] | None = None,
) -> Any:
    """Reconstruct a value from its stored form.

    Args:
        payload:       The stored text.
        type:          The stored type tag.
        key:           Property name, used in error messages and code filenames.
        scope_globals: Globals revived functions are bound to.  Defaults to a
                       dict holding only the builtins.

    Raises:
        DeserializationError: corrupt JSON or function source.
    """
    if type == FUNCTION_TYPE:
        return _revive_function(payload, key, scope_globals)
    try:
        return json.loads(payload)
    except (TypeError, ValueError) as exc:
        raise DeserializationError(key, f"invalid JSON payload: {exc}") from exc


# ---------------------------------------------------------------------------
# Function source extraction
# ---------------------------------------------------------------------------


def function_source(fn: types.FunctionType, key: str = "<value>") -> str:
    """Return the standalone source text of *fn* (no decorators, dedented)."""
    source = textwrap.dedent(_source_text(fn, key)).strip()

    if fn.__name__ == "<lambda>":
        return _extract_lambda(source, fn, key)
    return _extract_def(source, fn, key)


def _source_text(fn: types.FunctionType, key: str) -> str:
    source = getattr(fn, SOURCE_ATTR, None)
    if source is not None:
        return source
    try:
        return inspect.getsource(fn)
    except (OSError, TypeError):
        pass
    # Code compiled by the shell has no file; its text sits in linecache.
    code = fn.__code__
    lines = linecache.getlines(code.co_filename)
    if lines:
        return "".join(lines[code.co_firstlineno - 1:])
    raise SerializationError(key, f"source of {fn.__qualname__} is unavailable")


def _extract_def(source: str, fn: types.FunctionType, key: str) -> str:
    try:
        tree = ast.parse(source)
    except SyntaxError as exc:
        raise SerializationError(key, f"cannot parse source of {fn.__qualname__}") from exc

    for node in ast.walk(tree):
        if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)) and node.name == fn.__name__:
            # The segment starts at ``def``; decorators are left behind.
            segment = ast.get_source_segment(source, node)
            if segment:
                return textwrap.dedent(segment)
    raise SerializationError(key, f"no definition of {fn.__name__} found in its source")


def _extract_lambda(source: str, fn: types.FunctionType, key: str) -> str:
    # inspect returns the whole line(s) around a lambda; cut out each
    # syntactically complete ``lambda ...`` expression and keep the one
    # compiling to the same bytecode.  Candidates are compiled, never run.
    candidates: list[str] = []
    for match in _LAMBDA_RE.finditer(source):
        for end in range(len(source), match.start(), -1):
            snippet = source[match.start():end].strip()
            try:
                tree = ast.parse(snippet, mode="eval")
            except SyntaxError:
                continue
            if isinstance(tree.body, ast.Lambda):
                # Trailing comments parse too; keep the expression only.
                candidates.append(ast.get_source_segment(snippet, tree.body) or snippet)
                break

    for snippet in candidates:
        code = _lambda_code(snippet)
        if code is not None and code.co_code == fn.__code__.co_code:
            return snippet
    if len(candidates) == 1:
        return candidates[0]
    raise SerializationError(key, "cannot isolate lambda source text")


def _lambda_code(snippet: str) -> types.CodeType | None:
    try:
        outer = compile(snippet, "<lambda>", "eval")
    except (SyntaxError, ValueError):
        return None
    for const in outer.co_consts:
        if isinstance(const, types.CodeType):
            return const
    return None


# ---------------------------------------------------------------------------
# Function revival
# ---------------------------------------------------------------------------


def _revive_function(
    payload: str, key: str, scope_globals: dict[str, Any] | None
) -> Callable[..., Any]:
    filename = f"<hlvm:{key}>"
    globals_ = scope_globals if scope_globals is not None else {"__builtins__": builtins}

    try:
        expression = compile(payload, filename, "eval")
    except SyntaxError:
        expression = None

    try:
        if expression is not None:
            value = eval(expression, globals_)
        else:
            value = _exec_single_def(payload, filename, globals_, key)
    except DeserializationError:
        raise
    except Exception as exc:
        raise DeserializationError(key, f"{type(exc).__name__}: {exc}") from exc

    if not callable(value):
        raise DeserializationError(key, "payload does not evaluate to a function")
    setattr(value, SOURCE_ATTR, payload)
    return value


def _exec_single_def(
    payload: str, filename: str, globals_: dict[str, Any], key: str
) -> Callable[..., Any]:
    tree = ast.parse(payload, filename=filename)
    defs = [n for n in tree.body if isinstance(n, (ast.FunctionDef, ast.AsyncFunctionDef))]
    if len(tree.body) != 1 or len(defs) != 1:
        raise DeserializationError(key, "payload must hold exactly one function definition")

    # Separate locals: the function's name is not leaked into the shared scope,
    # while its __globals__ stays the live scope dict.
    local_ns: dict[str, Any] = {}
    exec(compile(tree, filename, "exec"), globals_, local_ns)
    return local_ns[defs[0].name]
