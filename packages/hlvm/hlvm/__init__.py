"""HLVM — Command-line assistant shell gluing a local LLM to OS automation.

This package holds the persistent namespace kernel at the heart of the
shell: a single root object (``hlvm``) whose custom properties and shortcuts
are mirrored to SQLite and rehydrated on the next start.

Layers (bottom to top):
    1. Store       — synchronous SQLite rows for properties and shortcuts
    2. Serializer  — JSON values and function source text
    3. Namespace   — the intercepting root object, reserved-name guard
    4. Shortcuts   — late-binding callables in an explicit scope
    5. Bootstrap   — rehydration before user code runs
    6. CLI         — ``hlvm`` console script (typer + rich)
"""

__version__ = "0.1.0"
__author__ = "HLVM Contributors"
__license__ = "MIT"

__all__ = ["__version__"]
