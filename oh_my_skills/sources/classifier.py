"""Turn a user supplied install source into a ``SourceDescriptor``."""

from __future__ import annotations

import re
from pathlib import Path

from oh_my_skills.constants import (
    ARCHIVE_SUFFIX,
    GITHUB_RAW_URL,
    MARKDOWN_SUFFIXES,
    ZIP_MAGIC,
)
from oh_my_skills.errors import SourceInvalidError
from oh_my_skills.sources.models import SourceDescriptor, SourceKind

_URL_RE = re.compile(r"^https?://", re.IGNORECASE)
_GITHUB_URL = r"^https?://(?:www\.)?github\.com/"
_TREE_RE = re.compile(
    _GITHUB_URL + r"(?P<owner>[^/]+)/(?P<repo>[^/]+)/tree/(?P<ref>[^/]+)(?:/(?P<path>.*))?$",
    re.IGNORECASE,
)
_BLOB_RE = re.compile(
    _GITHUB_URL + r"(?P<owner>[^/]+)/(?P<repo>[^/]+)/blob/(?P<rest>.+)$",
    re.IGNORECASE,
)
_REPO_URL_RE = re.compile(
    _GITHUB_URL + r"(?P<owner>[^/]+)/(?P<repo>[^/]+?)(?:\.git)?/?$",
    re.IGNORECASE,
)
_SHORTHAND_RE = re.compile(
    r"^(?:github:)?(?P<owner>[A-Za-z0-9_.-]+)/(?P<repo>[A-Za-z0-9_.-]+)(?:/(?P<path>.+))?$"
)


def is_url(value: str) -> bool:
    return bool(_URL_RE.match(value))


def _strip_query(value: str) -> str:
    return value.split("?", 1)[0].split("#", 1)[0]


def _has_suffix(value: str, suffixes: tuple[str, ...]) -> bool:
    return _strip_query(value).lower().rstrip("/").endswith(suffixes)


def _raw_github_url(url: str) -> str:
    match = _BLOB_RE.match(url)
    if match is None:
        return url
    return f"{GITHUB_RAW_URL}/{match['owner']}/{match['repo']}/{match['rest']}"


def _sniff_zip(raw: str, content: bytes | None) -> bool:
    if content is not None:
        return content.startswith(ZIP_MAGIC)
    if is_url(raw):
        return False
    path = Path(raw).expanduser()
    if not path.is_file():
        return False
    try:
        with path.open("rb") as handle:
            return handle.read(len(ZIP_MAGIC)) == ZIP_MAGIC
    except OSError:
        return False


def _location(raw: str) -> str:
    if is_url(raw):
        return _raw_github_url(raw)
    return str(Path(raw).expanduser())


def _looks_like_local_path(raw: str) -> bool:
    if raw.startswith(("/", "./", "../", "~")):
        return True
    return Path(raw).expanduser().exists()


def classify(descriptor: str, content: bytes | None = None) -> SourceDescriptor:
    """Classify ``descriptor``; the first matching rule wins."""
    raw = descriptor.strip()
    if not raw:
        raise SourceInvalidError(descriptor, "empty source")
    remote = is_url(raw)

    if _has_suffix(raw, (ARCHIVE_SUFFIX,)) or _sniff_zip(raw, content):
        return SourceDescriptor(
            raw=raw,
            kind=SourceKind.ARCHIVE,
            location=_location(raw),
            is_remote=remote and content is None,
            content=content,
        )

    tree = _TREE_RE.match(raw)
    if tree is not None:
        return SourceDescriptor(
            raw=raw,
            kind=SourceKind.GITHUB_DIRECTORY,
            location=raw,
            is_remote=True,
            owner=tree["owner"],
            repo=tree["repo"],
            ref=tree["ref"],
            subpath=(tree["path"] or "").strip("/"),
        )

    repo_url = _REPO_URL_RE.match(raw)
    shorthand = None
    if not remote and content is None:
        if raw.startswith("github:"):
            shorthand = _SHORTHAND_RE.match(raw)
        elif not (_looks_like_local_path(raw) or _has_suffix(raw, MARKDOWN_SUFFIXES)):
            shorthand = _SHORTHAND_RE.match(raw)
            if shorthand is not None and shorthand["path"]:
                shorthand = None
    match = repo_url or shorthand
    if match is not None:
        subpath = match.groupdict().get("path") or ""
        return SourceDescriptor(
            raw=raw,
            kind=SourceKind.GITHUB_REPOSITORY,
            location=raw,
            is_remote=True,
            owner=match["owner"],
            repo=match["repo"],
            subpath=subpath.strip("/"),
        )

    if _has_suffix(raw, MARKDOWN_SUFFIXES):
        return SourceDescriptor(
            raw=raw,
            kind=SourceKind.SINGLE_FILE,
            location=_location(raw),
            is_remote=remote and content is None,
            content=content,
        )

    raise SourceInvalidError(raw, "unrecognized source")
