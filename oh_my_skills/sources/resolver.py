"""Fetch a classified source into an in-memory ``Bundle``."""

from __future__ import annotations

import asyncio
import logging
import posixpath
from pathlib import Path
from typing import Any
from urllib.parse import quote

import httpx

from oh_my_skills.constants import MAX_FETCH_ATTEMPTS, PRIMARY_FILENAME, USER_AGENT
from oh_my_skills.errors import (
    SourceEmptyError,
    SourceInvalidError,
    SourceUnreachableError,
)
from oh_my_skills.settings import EngineSettings
from oh_my_skills.skills.archive import extract_zip
from oh_my_skills.skills.parser import name_hint_from_origin
from oh_my_skills.sources.classifier import classify
from oh_my_skills.sources.models import (
    Bundle,
    BundleFile,
    SourceDescriptor,
    SourceKind,
)

logger = logging.getLogger(__name__)


def build_http_client(settings: EngineSettings) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=settings.http_timeout,
        headers={"User-Agent": USER_AGENT},
        follow_redirects=True,
    )


class SourceResolver:
    """Classify and fetch install sources.

    Remote requests are retried once on transport errors and 5xx responses;
    a 4xx response fails immediately.
    """

    def __init__(
        self,
        settings: EngineSettings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or EngineSettings()
        self._owns_client = client is None
        self._client = client or build_http_client(self._settings)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "SourceResolver":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def resolve(self, descriptor: str, content: bytes | None = None) -> Bundle:
        source = classify(descriptor, content)
        logger.debug("resolved %s as %s", source.raw, source.kind.value)

        if source.kind == SourceKind.ARCHIVE:
            data = await self._read(source)
            files = extract_zip(data, source.raw)
            name_hint = name_hint_from_origin(source.raw)
        elif source.kind == SourceKind.SINGLE_FILE:
            data = await self._read(source)
            files = [BundleFile(path=PRIMARY_FILENAME, content=data)]
            name_hint = name_hint_from_origin(source.raw)
        else:
            files = await self._fetch_github(source)
            name_hint = (
                posixpath.basename(source.subpath) if source.subpath else source.repo
            ) or ""

        if not files:
            raise SourceEmptyError(source.raw)
        return Bundle(
            files=tuple(files),
            origin=source.raw,
            kind=source.kind,
            name_hint=name_hint,
        )

    async def _read(self, source: SourceDescriptor) -> bytes:
        if source.content is not None:
            return source.content
        if source.is_remote:
            response = await self._get(source.location)
            return response.content
        try:
            return await asyncio.to_thread(Path(source.location).read_bytes)
        except OSError as exc:
            raise SourceUnreachableError(source.raw, exc.strerror or str(exc)) from exc

    def _api_headers(self) -> dict[str, str]:
        headers = {"Accept": "application/vnd.github+json"}
        if self._settings.github_token:
            headers["Authorization"] = f"Bearer {self._settings.github_token}"
        return headers

    async def _get(
        self,
        url: str,
        *,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        detail = "no response"
        for attempt in range(1, MAX_FETCH_ATTEMPTS + 1):
            try:
                response = await self._client.get(url, params=params, headers=headers)
            except httpx.InvalidURL as exc:
                raise SourceInvalidError(url, str(exc)) from exc
            except httpx.TransportError as exc:
                detail = str(exc) or exc.__class__.__name__
            except httpx.RequestError as exc:
                # redirect loops and undecodable bodies do not improve on retry
                raise SourceUnreachableError(
                    url, str(exc) or exc.__class__.__name__
                ) from exc
            else:
                if response.is_success:
                    return response
                detail = f"HTTP {response.status_code}"
                if response.status_code < 500:
                    raise SourceUnreachableError(url, detail)

            if attempt < MAX_FETCH_ATTEMPTS:
                logger.warning(
                    "fetch of %s failed (%s), retrying in %.1fs",
                    url,
                    detail,
                    self._settings.retry_backoff,
                )
                await asyncio.sleep(self._settings.retry_backoff)
        raise SourceUnreachableError(url, detail)

    async def _get_json(self, url: str, params: dict[str, str] | None = None) -> Any:
        response = await self._get(url, params=params, headers=self._api_headers())
        try:
            return response.json()
        except ValueError as exc:
            raise SourceUnreachableError(url, "invalid JSON response") from exc

    async def _default_branch(self, owner: str, repo: str) -> str:
        url = f"{self._settings.github_api_url}/repos/{owner}/{repo}"
        payload = await self._get_json(url)
        branch = payload.get("default_branch") if isinstance(payload, dict) else None
        if not isinstance(branch, str) or not branch:
            raise SourceInvalidError(f"{owner}/{repo}", "no default branch")
        return branch

    async def _fetch_github(self, source: SourceDescriptor) -> list[BundleFile]:
        assert source.owner is not None and source.repo is not None
        ref = source.ref or await self._default_branch(source.owner, source.repo)
        return await self._fetch_contents(
            source.owner, source.repo, ref, source.subpath, ""
        )

    def _contents_url(self, owner: str, repo: str, path: str) -> str:
        base = f"{self._settings.github_api_url}/repos/{owner}/{repo}/contents"
        return f"{base}/{quote(path)}" if path else base

    async def _fetch_contents(
        self, owner: str, repo: str, ref: str, path: str, prefix: str
    ) -> list[BundleFile]:
        url = self._contents_url(owner, repo, path)
        payload = await self._get_json(url, params={"ref": ref})

        if isinstance(payload, dict):
            # Path points at a single file rather than a directory.
            payload = [payload]
        if not isinstance(payload, list):
            raise SourceInvalidError(url, "unexpected contents response")

        tasks = []
        for item in payload:
            if not isinstance(item, dict):
                continue
            name = item.get("name")
            item_type = item.get("type")
            if not isinstance(name, str) or not name:
                continue
            relative = f"{prefix}{name}"
            if item_type == "file":
                download_url = item.get("download_url")
                if not isinstance(download_url, str):
                    logger.debug("skipping %s without download_url", relative)
                    continue
                tasks.append(self._download(download_url, relative))
            elif item_type == "dir":
                child = item.get("path") or posixpath.join(path, name)
                tasks.append(
                    self._fetch_contents(owner, repo, ref, child, f"{relative}/")
                )

        files: list[BundleFile] = []
        for result in await asyncio.gather(*tasks):
            if isinstance(result, BundleFile):
                files.append(result)
            else:
                files.extend(result)
        return files

    async def _download(self, url: str, relative: str) -> BundleFile:
        response = await self._get(url)
        return BundleFile(path=relative, content=response.content)
