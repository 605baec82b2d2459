from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from oh_my_skills.agents.models import ConfigFormat
from oh_my_skills.config.document import ConfigDocument
from oh_my_skills.config.toml_writer import dump_tables
from oh_my_skills.errors import ConfigParseError


@dataclass
class _Segment:
    """A header line plus everything up to the next header."""

    path: tuple[str, ...] | None
    lines: list[str] = field(default_factory=list)

    def text(self) -> str:
        return "".join(self.lines)

    def trailing_comments(self) -> str:
        start = len(self.lines)
        while start > 0 and _is_trivia(self.lines[start - 1]):
            start -= 1
        for index in range(start, len(self.lines)):
            if self.lines[index].lstrip().startswith("#"):
                return "".join(self.lines[index:])
        return ""


def _is_trivia(line: str) -> bool:
    stripped = line.strip()
    return not stripped or stripped.startswith("#")


class _Scanner:
    """Tracks string and bracket state across lines of TOML text."""

    def __init__(self) -> None:
        self.quote: str | None = None
        self.depth = 0

    @property
    def at_top_level(self) -> bool:
        return self.quote is None and self.depth == 0

    def feed(self, line: str) -> None:
        index = 0
        length = len(line)
        while index < length:
            char = line[index]
            if self.quote is None:
                if char == "#":
                    break
                if line.startswith('"""', index) or line.startswith("'''", index):
                    self.quote = line[index : index + 3]
                    index += 3
                    continue
                if char in "\"'":
                    self.quote = char
                elif char in "[{":
                    self.depth += 1
                elif char in "]}":
                    self.depth -= 1
                index += 1
                continue

            if char == "\\" and self.quote in ('"', '"""'):
                index += 2
                continue
            if len(self.quote) == 3 and line.startswith(self.quote, index):
                run = index
                while run < length and line[run] == self.quote[0] and run - index < 5:
                    run += 1
                self.quote = None
                index = run
                continue
            if len(self.quote) == 1 and char == self.quote:
                self.quote = None
            index += 1

        if self.quote in ('"', "'"):
            self.quote = None


def _header_path(line: str) -> tuple[str, ...]:
    node: Any = tomllib.loads(line)
    parts: list[str] = []
    while isinstance(node, dict) and len(node) == 1:
        key, node = next(iter(node.items()))
        parts.append(key)
        if isinstance(node, list):
            break
    return tuple(parts)


def _split_segments(text: str) -> list[_Segment]:
    segments = [_Segment(path=None)]
    scanner = _Scanner()
    for line in text.splitlines(keepends=True):
        if scanner.at_top_level and line.lstrip().startswith("["):
            segments.append(_Segment(path=_header_path(line), lines=[line]))
            continue
        scanner.feed(line)
        segments[-1].lines.append(line)
    return segments


class TomlConfigDocument(ConfigDocument):
    """TOML config whose ``[servers_key.*]`` tables are regenerated on save.

    Tables outside the servers key, the root preamble and comments that
    trail a servers table are copied through as text.
    """

    format = ConfigFormat.TOML

    def __init__(self, path: Path, servers_key: str, text: str | None) -> None:
        super().__init__(path, servers_key, text)
        self._tree: dict[str, Any] = {}
        self._segments: list[_Segment] = []
        self._inline_servers = False
        if text is None or not text.strip():
            return
        try:
            self._tree = tomllib.loads(text)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigParseError(path, f"invalid TOML: {exc}") from exc
        self._segments = _split_segments(text)
        preamble = tomllib.loads(self._segments[0].text())
        self._inline_servers = servers_key in preamble

    def _stored_servers(self) -> Any:
        return self._tree.get(self.servers_key)

    def _is_servers_segment(self, segment: _Segment) -> bool:
        return bool(segment.path) and segment.path[0] == self.servers_key

    def _render_with(self, servers: dict[str, Any]) -> str:
        if self._inline_servers:
            raise ConfigParseError(
                self.path,
                f"'{self.servers_key}' is defined inline at the top level; "
                f"move it into [{self.servers_key}.<name>] tables to edit it",
            )

        text = self.original_text
        root_header = any(
            segment.path == (self.servers_key,) for segment in self._segments
        )
        block = dump_tables(self.servers_key, servers, root_header=root_header)

        head: list[str] = []
        tail: list[str] = []
        placed = False
        for segment in self._segments:
            if self._is_servers_segment(segment):
                placed = True
                tail.append(segment.trailing_comments())
            elif placed:
                tail.append(segment.text())
            else:
                head.append(segment.text())

        if not placed:
            if not block:
                return text
            head, tail = [text], []

        before = "".join(head)
        after = "".join(tail)

        if not block:
            if after.strip():
                return before + after
            return before.rstrip("\n") + "\n" if before.strip() else ""

        if before and not before.endswith("\n"):
            before += "\n"
        if before.strip() and not before.endswith("\n\n"):
            before += "\n"
        if after.strip():
            return before + block + "\n" + after.lstrip("\n")
        return before + block
