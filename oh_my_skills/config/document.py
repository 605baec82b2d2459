"""Structured MCP config documents that keep unrelated content verbatim."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from copy import deepcopy
from pathlib import Path
from typing import Any

from oh_my_skills.agents.models import ConfigFormat
from oh_my_skills.errors import ConfigParseError
from oh_my_skills.utils import atomic_write_text

logger = logging.getLogger(__name__)


class ConfigDocument(ABC):
    """One config file, split into the servers subtree and opaque content.

    Only the map stored under ``servers_key`` is exposed for editing. Every
    other byte of the original text is carried through ``render`` untouched,
    and an unmodified document renders to exactly the text it was read from.
    """

    format: ConfigFormat

    def __init__(self, path: Path, servers_key: str, text: str | None) -> None:
        self.path = path
        self.servers_key = servers_key
        self._text = text
        self._replacement: dict[str, Any] | None = None

    @property
    def exists(self) -> bool:
        return self._text is not None

    @property
    def original_text(self) -> str:
        return self._text or ""

    @property
    def dirty(self) -> bool:
        return self._replacement is not None

    def servers(self) -> dict[str, Any]:
        if self._replacement is not None:
            return deepcopy(self._replacement)
        current = self._stored_servers()
        if current is None:
            return {}
        if not isinstance(current, dict):
            raise ConfigParseError(
                self.path, f"'{self.servers_key}' must be an object"
            )
        return deepcopy(current)

    def replace_servers(self, servers: dict[str, Any]) -> None:
        self._replacement = deepcopy(servers)

    def render(self) -> str:
        if self._replacement is None:
            return self.original_text
        return self._render_with(self._replacement)

    @abstractmethod
    def _stored_servers(self) -> Any:
        raise NotImplementedError

    @abstractmethod
    def _render_with(self, servers: dict[str, Any]) -> str:
        raise NotImplementedError


def _read_text(path: Path) -> str | None:
    if not path.exists():
        return None
    try:
        return path.read_bytes().decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ConfigParseError(path, f"not UTF-8 text: {exc}") from exc


def load_document(path: Path, fmt: ConfigFormat, servers_key: str) -> ConfigDocument:
    from oh_my_skills.config.json_document import JsonConfigDocument
    from oh_my_skills.config.toml_document import TomlConfigDocument

    text = _read_text(path)
    if fmt == ConfigFormat.JSON:
        return JsonConfigDocument(path, servers_key, text)
    if fmt == ConfigFormat.TOML:
        return TomlConfigDocument(path, servers_key, text)
    raise ValueError(f"Unsupported config format: {fmt}")


def save_document(document: ConfigDocument) -> bool:
    """Persist ``document``; returns False when nothing needed writing."""
    if not document.dirty:
        return False
    atomic_write_text(document.path, document.render())
    logger.info("wrote %s config %s", document.format.value, document.path)
    return True
