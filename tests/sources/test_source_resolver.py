"""Tests for fetching install sources over HTTP and from disk."""

from __future__ import annotations

import io
import zipfile
from pathlib import Path
from typing import Callable

import httpx
import pytest

from oh_my_skills.errors import SourceEmptyError, SourceInvalidError, SourceUnreachableError
from oh_my_skills.settings import EngineSettings
from oh_my_skills.sources.models import SourceKind
from oh_my_skills.sources.resolver import SourceResolver

API = "https://api.github.com"


def _resolver(
    settings: EngineSettings, handler: Callable[[httpx.Request], httpx.Response]
) -> SourceResolver:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return SourceResolver(settings, client)


def _zip(entries: dict[str, bytes]) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        for name, data in entries.items():
            archive.writestr(name, data)
    return buffer.getvalue()


def _github_handler(seen: list[httpx.Request]) -> Callable[[httpx.Request], httpx.Response]:
    routes = {
        f"{API}/repos/acme/skills": {"default_branch": "main"},
        f"{API}/repos/acme/skills/contents": [
            {"name": "SKILL.md", "type": "file", "download_url": "https://raw.test/SKILL.md"},
            {"name": "scripts", "type": "dir", "path": "scripts"},
            {"name": "link", "type": "symlink"},
        ],
        f"{API}/repos/acme/skills/contents/scripts": [
            {"name": "run.sh", "type": "file", "download_url": "https://raw.test/scripts/run.sh"},
        ],
    }
    files = {
        "https://raw.test/SKILL.md": b"# Repo skill\n",
        "https://raw.test/scripts/run.sh": b"echo hi\n",
    }

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        url = f"{request.url.scheme}://{request.url.host}{request.url.path}"
        if url in routes:
            return httpx.Response(200, json=routes[url])
        if url in files:
            return httpx.Response(200, content=files[url])
        return httpx.Response(404)

    return handler


@pytest.mark.asyncio(loop_scope="function")
async def test_github_repository_is_fetched_recursively(settings: EngineSettings) -> None:
    seen: list[httpx.Request] = []
    async with _resolver(settings, _github_handler(seen)) as resolver:
        bundle = await resolver.resolve("github:acme/skills")

    assert bundle.kind == SourceKind.GITHUB_REPOSITORY
    assert bundle.name_hint == "skills"
    assert sorted(bundle.paths()) == ["SKILL.md", "scripts/run.sh"]
    contents = [r for r in seen if "/contents" in r.url.path]
    assert {r.url.params["ref"] for r in contents} == {"main"}
    assert all(r.headers["Accept"] == "application/vnd.github+json" for r in contents)


@pytest.mark.asyncio(loop_scope="function")
async def test_tree_url_skips_default_branch_lookup(tmp_path: Path) -> None:
    settings = EngineSettings(home=tmp_path, retry_backoff=0.0, github_token="tok")
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.url.path == "/repos/acme/skills/contents/skills/commit":
            return httpx.Response(
                200,
                json=[{"name": "SKILL.md", "type": "file", "download_url": "https://raw.test/a"}],
            )
        return httpx.Response(200, content=b"# Commit\n")

    async with _resolver(settings, handler) as resolver:
        bundle = await resolver.resolve(
            "https://github.com/acme/skills/tree/dev/skills/commit"
        )

    assert bundle.name_hint == "commit"
    assert bundle.paths() == ["SKILL.md"]
    assert seen[0].url.params["ref"] == "dev"
    assert seen[0].headers["Authorization"] == "Bearer tok"
    assert not any(r.url.path == "/repos/acme/skills" for r in seen)


@pytest.mark.asyncio(loop_scope="function")
async def test_server_errors_are_retried_once(settings: EngineSettings) -> None:
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if len(calls) == 1:
            return httpx.Response(503)
        return httpx.Response(200, content=b"# Flaky\n")

    async with _resolver(settings, handler) as resolver:
        bundle = await resolver.resolve("https://example.com/flaky.md")

    assert len(calls) == 2
    assert bundle.files[0].content == b"# Flaky\n"
    assert bundle.name_hint == "flaky"


@pytest.mark.asyncio(loop_scope="function")
async def test_client_errors_are_not_retried(settings: EngineSettings) -> None:
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(404)

    async with _resolver(settings, handler) as resolver:
        with pytest.raises(SourceUnreachableError) as exc:
            await resolver.resolve("https://example.com/missing.md")

    assert len(calls) == 1
    assert "HTTP 404" in str(exc.value)


@pytest.mark.asyncio(loop_scope="function")
async def test_persistent_failures_give_up(settings: EngineSettings) -> None:
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        raise httpx.ConnectError("refused", request=request)

    async with _resolver(settings, handler) as resolver:
        with pytest.raises(SourceUnreachableError):
            await resolver.resolve("https://example.com/skill.zip")

    assert len(calls) == 2


@pytest.mark.asyncio(loop_scope="function")
async def test_malformed_url_is_an_invalid_source(settings: EngineSettings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    async with _resolver(settings, handler) as resolver:
        with pytest.raises(SourceInvalidError):
            await resolver.resolve("http://[::1/skill.md")


@pytest.mark.asyncio(loop_scope="function")
async def test_redirect_loop_is_unreachable(settings: EngineSettings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(302, headers={"Location": str(request.url)})

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), follow_redirects=True)
    async with SourceResolver(settings, client) as resolver:
        with pytest.raises(SourceUnreachableError) as exc:
            await resolver.resolve("https://example.com/SKILL.md")

    assert "redirects" in str(exc.value)


@pytest.mark.asyncio(loop_scope="function")
async def test_missing_default_branch(settings: EngineSettings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"name": "skills"})

    async with _resolver(settings, handler) as resolver:
        with pytest.raises(SourceInvalidError):
            await resolver.resolve("acme/skills")


@pytest.mark.asyncio(loop_scope="function")
async def test_local_sources(settings: EngineSettings, tmp_path: Path) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no network expected")

    skill = tmp_path / "my-skill" / "SKILL.md"
    skill.parent.mkdir()
    skill.write_text("# Mine\n")
    archive = tmp_path / "pack.zip"
    archive.write_bytes(_zip({"pack/SKILL.md": b"# Pack\n"}))

    async with _resolver(settings, handler) as resolver:
        single = await resolver.resolve(str(skill))
        zipped = await resolver.resolve(str(archive))
        uploaded = await resolver.resolve("upload.zip", content=_zip({"SKILL.md": b"x"}))

        with pytest.raises(SourceUnreachableError):
            await resolver.resolve(str(tmp_path / "missing.md"))
        with pytest.raises(SourceEmptyError):
            await resolver.resolve("empty.zip", content=_zip({}))

    assert single.name_hint == "my-skill"
    assert single.paths() == ["SKILL.md"]
    assert zipped.paths() == ["pack/SKILL.md"]
    assert uploaded.name_hint == "upload"
