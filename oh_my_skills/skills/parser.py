"""Parse SKILL.md front matter and derive skill facts from its text."""

from __future__ import annotations

import logging
import math
import re
from typing import Any

import yaml

from oh_my_skills.constants import (
    ARCHIVE_SUFFIX,
    DEFAULT_SKILL_NAME,
    MARKDOWN_SUFFIXES,
    MAX_SKILL_NAME_LENGTH,
    PRIMARY_FILENAME,
)
from oh_my_skills.skills.models import FrontMatter

logger = logging.getLogger(__name__)

_FRONTMATTER_RE = re.compile(
    r"^\ufeff?---[ \t]*\r?\n(.*?)\r?\n---[ \t]*(?:\r?\n|$)", re.DOTALL
)
_WORD_RE = re.compile(r"\w+")
_PUNCT_RE = re.compile(r"[^\w\s]")
_LOOSE_LINE_RE = re.compile(r"^([A-Za-z_][\w-]*)\s*:\s*(.*)$")
_NAME_CHAR_RE = re.compile(r"[^a-z0-9_-]")


def _loose_front_matter(block: str) -> dict[str, Any]:
    raw: dict[str, Any] = {}
    for line in block.splitlines():
        if line.startswith((" ", "\t")):
            continue
        match = _LOOSE_LINE_RE.match(line.strip())
        if not match:
            continue
        value = match.group(2).strip().strip('"').strip("'")
        raw.setdefault(match.group(1), value)
    return raw


def split_front_matter(text: str) -> tuple[dict[str, Any], str]:
    match = _FRONTMATTER_RE.match(text)
    if not match:
        return {}, text

    block = match.group(1)
    body = text[match.end() :]
    try:
        raw = yaml.safe_load(block)
    except yaml.YAMLError as exc:
        logger.debug("front matter is not valid YAML, using loose parse: %s", exc)
        return _loose_front_matter(block), body
    if not isinstance(raw, dict):
        return _loose_front_matter(block), body
    return raw, body


def _string_field(raw: dict[str, Any], key: str) -> str | None:
    value = raw.get(key)
    if value is None:
        nested = raw.get("metadata")
        if isinstance(nested, dict):
            value = nested.get(key)
    if value is None or isinstance(value, (dict, list)):
        return None
    text = str(value).strip()
    return text or None


def parse_front_matter(text: str) -> FrontMatter:
    raw, _ = split_front_matter(text)
    return FrontMatter(
        name=_string_field(raw, "name"),
        description=_string_field(raw, "description"),
        version=_string_field(raw, "version"),
        author=_string_field(raw, "author"),
        raw=raw,
    )


def first_prose_line(body: str) -> str | None:
    in_fence = False
    in_comment = False
    for line in body.splitlines():
        stripped = line.strip()
        if stripped.startswith(("```", "~~~")):
            in_fence = not in_fence
            continue
        if in_fence:
            continue
        if in_comment:
            if "-->" in stripped:
                in_comment = False
            continue
        if stripped.startswith("<!--"):
            in_comment = "-->" not in stripped
            continue
        if not stripped or stripped.startswith("#"):
            continue
        return stripped
    return None


def describe(text: str, front_matter: FrontMatter | None = None) -> str | None:
    fm = front_matter or parse_front_matter(text)
    if fm.description:
        return fm.description
    _, body = split_front_matter(text)
    return first_prose_line(body)


def count_tokens(text: str) -> int:
    """Approximate sub-word token count, stable for identical input."""
    words = sum(
        max(1, math.ceil(len(word) / 4)) for word in _WORD_RE.findall(text)
    )
    return words + len(_PUNCT_RE.findall(text))


def sanitize_name(name: str) -> str:
    sanitized = _NAME_CHAR_RE.sub("-", name.strip().lower())
    return sanitized[:MAX_SKILL_NAME_LENGTH].strip("-")


def name_hint_from_origin(origin: str) -> str:
    trimmed = origin.split("?", 1)[0].split("#", 1)[0].rstrip("/\\")
    parts = [part for part in re.split(r"[/\\:]", trimmed) if part]
    if not parts:
        return ""
    last = parts[-1]
    if last.lower() == PRIMARY_FILENAME.lower() and len(parts) > 1:
        last = parts[-2]
    lowered = last.lower()
    for suffix in (*MARKDOWN_SUFFIXES, ARCHIVE_SUFFIX):
        if lowered.endswith(suffix):
            last = last[: -len(suffix)]
            break
    return last


def skill_name(front_matter: FrontMatter, name_hint: str) -> str:
    for candidate in (front_matter.name, name_hint):
        if candidate:
            sanitized = sanitize_name(candidate)
            if sanitized:
                return sanitized
    return DEFAULT_SKILL_NAME
