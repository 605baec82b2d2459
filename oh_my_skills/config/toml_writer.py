import math
import re
from datetime import date, datetime, time
from typing import Any

_BARE_KEY_RE = re.compile(r"^[A-Za-z0-9_-]+$")
_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\b": "\\b",
    "\t": "\\t",
    "\n": "\\n",
    "\f": "\\f",
    "\r": "\\r",
}


def _dump_string(value: str) -> str:
    out: list[str] = []
    for char in value:
        if char in _ESCAPES:
            out.append(_ESCAPES[char])
        elif ord(char) < 0x20 or ord(char) == 0x7F:
            out.append(f"\\u{ord(char):04x}")
        else:
            out.append(char)
    return '"' + "".join(out) + '"'


def dump_key(key: str) -> str:
    return key if _BARE_KEY_RE.match(key) else _dump_string(key)


def dump_key_path(parts: list[str]) -> str:
    return ".".join(dump_key(part) for part in parts)


def dump_toml_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if math.isnan(value):
            return "nan"
        if math.isinf(value):
            return "inf" if value > 0 else "-inf"
        return repr(value)
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, list):
        return "[" + ", ".join(dump_toml_value(item) for item in value) + "]"
    if isinstance(value, dict):
        if not value:
            return "{}"
        items = ", ".join(
            f"{dump_key(str(k))} = {dump_toml_value(v)}" for k, v in value.items()
        )
        return "{ " + items + " }"
    return _dump_string(str(value))


def _dump_table(lines: list[str], path: list[str], values: dict[str, Any]) -> None:
    lines.append(f"[{dump_key_path(path)}]")
    nested: list[tuple[str, dict[str, Any]]] = []
    for key, value in values.items():
        if isinstance(value, dict):
            nested.append((key, value))
            continue
        lines.append(f"{dump_key(key)} = {dump_toml_value(value)}")
    lines.append("")
    for key, value in nested:
        _dump_table(lines, [*path, key], value)


def dump_tables(
    root_key: str, tables: dict[str, Any], root_header: bool = False
) -> str:
    """Render ``{name: {...}}`` as ``[root_key.name]`` tables with sub-tables.

    ``root_header`` keeps a bare ``[root_key]`` table even when it holds no
    scalars of its own.
    """
    lines: list[str] = []
    scalars = {k: v for k, v in tables.items() if not isinstance(v, dict)}
    if scalars or root_header:
        lines.append(f"[{dump_key(root_key)}]")
        for name, value in scalars.items():
            lines.append(f"{dump_key(name)} = {dump_toml_value(value)}")
        lines.append("")
    for name, values in tables.items():
        if isinstance(values, dict):
            _dump_table(lines, [root_key, name], values)
    return "\n".join(lines).strip("\n") + "\n" if lines else ""
