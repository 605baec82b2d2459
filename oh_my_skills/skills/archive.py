"""Unpack and validate fetched skill bundles."""

from __future__ import annotations

import io
import logging
import posixpath
import zipfile
from pathlib import PurePosixPath

from oh_my_skills.constants import ARCHIVE_IGNORED_PARTS, PRIMARY_FILENAME
from oh_my_skills.errors import (
    MissingPrimaryFileError,
    PathEscapeError,
    SourceEmptyError,
    SourceInvalidError,
)
from oh_my_skills.skills.models import PreparedSkill
from oh_my_skills.skills.parser import (
    count_tokens,
    describe,
    parse_front_matter,
    skill_name,
)
from oh_my_skills.sources.models import Bundle, BundleFile

logger = logging.getLogger(__name__)


def normalize_member_path(name: str) -> str:
    """Return a clean relative POSIX path or raise ``PathEscapeError``."""
    candidate = name.replace("\\", "/")
    pure = PurePosixPath(candidate)
    if pure.is_absolute() or (pure.parts and pure.parts[0].endswith(":")):
        raise PathEscapeError(name)
    normalized = posixpath.normpath(candidate)
    if normalized == ".." or normalized.startswith("../"):
        raise PathEscapeError(name)
    return "" if normalized == "." else normalized


def _is_ignored(path: str) -> bool:
    return any(part in ARCHIVE_IGNORED_PARTS for part in path.split("/"))


def extract_zip(data: bytes, origin: str) -> list[BundleFile]:
    try:
        archive = zipfile.ZipFile(io.BytesIO(data))
    except zipfile.BadZipFile as exc:
        raise SourceInvalidError(origin, f"invalid zip archive: {exc}") from exc

    files: list[BundleFile] = []
    with archive:
        for info in archive.infolist():
            if info.is_dir():
                continue
            relative = normalize_member_path(info.filename)
            if not relative or _is_ignored(relative):
                continue
            try:
                content = archive.read(info)
            except (zipfile.BadZipFile, OSError) as exc:
                raise SourceInvalidError(
                    origin, f"cannot read {info.filename}: {exc}"
                ) from exc
            files.append(BundleFile(path=relative, content=content))
    logger.debug("extracted %d files from %s", len(files), origin)
    return files


def _depth(path: str) -> int:
    return path.count("/")


def find_primary_path(paths: list[str]) -> str | None:
    candidates = [
        path
        for path in paths
        if posixpath.basename(path).lower() == PRIMARY_FILENAME.lower()
    ]
    if not candidates:
        return None
    return min(candidates, key=lambda path: (_depth(path), path))


class SkillArchive:
    """Validate a bundle and derive the facts needed to install it."""

    def prepare(self, bundle: Bundle) -> PreparedSkill:
        if not bundle.files:
            raise SourceEmptyError(bundle.origin)

        primary = find_primary_path(bundle.paths())
        if primary is None:
            raise MissingPrimaryFileError(bundle.origin)

        prefix = posixpath.dirname(primary)
        files = self._reroot(bundle.files, prefix)
        primary_path = posixpath.basename(primary)

        text = next(
            item.content for item in files if item.path == primary_path
        ).decode("utf-8", errors="replace")
        front_matter = parse_front_matter(text)
        name_hint = posixpath.basename(prefix) if prefix else bundle.name_hint
        name = skill_name(front_matter, name_hint)

        return PreparedSkill(
            name=name,
            primary_path=primary_path,
            files=files,
            front_matter=front_matter,
            description=describe(text, front_matter),
            token_count=count_tokens(text),
            origin=bundle.origin,
        )

    @staticmethod
    def _reroot(
        files: tuple[BundleFile, ...], prefix: str
    ) -> tuple[BundleFile, ...]:
        rerooted: list[BundleFile] = []
        marker = f"{prefix}/" if prefix else ""
        for item in files:
            if marker and not item.path.startswith(marker):
                logger.debug("dropping %s outside skill root %s", item.path, prefix)
                continue
            relative = normalize_member_path(item.path[len(marker) :])
            if relative:
                rerooted.append(BundleFile(path=relative, content=item.content))
        return tuple(rerooted)
