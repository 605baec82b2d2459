from __future__ import annotations

import json
import re
from dataclasses import dataclass
from json.decoder import scanstring
from pathlib import Path
from typing import Any

from oh_my_skills.agents.models import ConfigFormat
from oh_my_skills.config.document import ConfigDocument
from oh_my_skills.errors import ConfigParseError

_WS_RE = re.compile(r"[ \t\n\r]*")
DEFAULT_INDENT = "  "


@dataclass(frozen=True)
class _Member:
    key: str
    key_start: int
    value_start: int
    value_end: int


@dataclass(frozen=True)
class _ObjectLayout:
    open_index: int
    close_index: int
    members: tuple[_Member, ...]


def _skip_ws(text: str, index: int) -> int:
    return _WS_RE.match(text, index).end()  # type: ignore[union-attr]


def _scan_top_level(text: str) -> _ObjectLayout:
    """Record the raw span of every top-level member of a valid JSON object."""
    decoder = json.JSONDecoder()
    index = _skip_ws(text, 0)
    open_index = index
    index = _skip_ws(text, index + 1)
    members: list[_Member] = []
    if text[index] == "}":
        return _ObjectLayout(open_index, index, ())

    while True:
        key_start = index
        key, index = scanstring(text, index + 1)
        index = _skip_ws(text, index) + 1
        value_start = _skip_ws(text, index)
        _, value_end = decoder.raw_decode(text, value_start)
        members.append(_Member(key, key_start, value_start, value_end))
        index = _skip_ws(text, value_end)
        if text[index] == ",":
            index = _skip_ws(text, index + 1)
            continue
        return _ObjectLayout(open_index, index, tuple(members))


def _detect_indent(text: str, layout: _ObjectLayout) -> str | None:
    if not layout.members:
        return DEFAULT_INDENT
    first = layout.members[0]
    gap = text[layout.open_index + 1 : first.key_start]
    if "\n" not in gap:
        return None
    return gap.rsplit("\n", 1)[1]


def _dump_member_value(value: Any, indent: str | None) -> str:
    if indent is None:
        return json.dumps(value, ensure_ascii=False)
    dumped = json.dumps(value, indent=indent, ensure_ascii=False)
    return dumped.replace("\n", "\n" + indent)


class JsonConfigDocument(ConfigDocument):
    format = ConfigFormat.JSON

    def __init__(self, path: Path, servers_key: str, text: str | None) -> None:
        super().__init__(path, servers_key, text)
        self._tree: dict[str, Any] = {}
        self._layout: _ObjectLayout | None = None
        if text is None or not text.strip():
            return
        try:
            tree = json.loads(text)
        except ValueError as exc:
            raise ConfigParseError(path, f"invalid JSON: {exc}") from exc
        if not isinstance(tree, dict):
            raise ConfigParseError(path, "must be a JSON object")
        self._tree = tree
        self._layout = _scan_top_level(text)

    def _stored_servers(self) -> Any:
        return self._tree.get(self.servers_key)

    def _render_with(self, servers: dict[str, Any]) -> str:
        text = self.original_text
        layout = self._layout
        existing = (
            [m for m in layout.members if m.key == self.servers_key] if layout else []
        )
        if not servers and not existing:
            return text

        if layout is None:
            body = _dump_member_value(servers, DEFAULT_INDENT)
            key = json.dumps(self.servers_key)
            return f"{{\n{DEFAULT_INDENT}{key}: {body}\n}}\n"

        indent = _detect_indent(text, layout)
        dumped = _dump_member_value(servers, indent)

        if existing:
            member = existing[-1]
            return text[: member.value_start] + dumped + text[member.value_end :]

        key = json.dumps(self.servers_key, ensure_ascii=False)
        if not layout.members:
            inner = f"\n{DEFAULT_INDENT}{key}: {dumped}\n"
            return text[: layout.open_index + 1] + inner + text[layout.close_index :]

        last = layout.members[-1]
        separator = f",\n{indent}" if indent is not None else ", "
        return (
            text[: last.value_end]
            + separator
            + f"{key}: {dumped}"
            + text[last.value_end :]
        )
