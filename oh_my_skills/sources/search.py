from __future__ import annotations

import logging
from typing import Any

import httpx

from oh_my_skills.errors import SourceInvalidError, SourceUnreachableError
from oh_my_skills.settings import EngineSettings
from oh_my_skills.sources.models import SearchSkill
from oh_my_skills.sources.resolver import build_http_client

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_LIMIT = 20


def _parse_skill(item: Any) -> SearchSkill | None:
    if not isinstance(item, dict):
        return None
    name = item.get("name")
    slug = item.get("id")
    if not isinstance(name, str) or not isinstance(slug, str):
        return None
    source = item.get("topSource")
    installs = item.get("installs")
    return SearchSkill(
        name=name,
        slug=slug,
        source=source if isinstance(source, str) else "",
        installs=installs
        if isinstance(installs, int) and not isinstance(installs, bool) and installs >= 0
        else 0,
    )


class SkillSearchClient:
    """Thin client for the public skills search index."""

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

    async def search(self, query: str, limit: int = DEFAULT_SEARCH_LIMIT) -> list[SearchSkill]:
        query = query.strip()
        if not query:
            return []

        url = self._settings.search_url
        try:
            response = await self._client.get(
                url, params={"q": query, "limit": str(limit)}
            )
        except httpx.InvalidURL as exc:
            raise SourceInvalidError(url, str(exc)) from exc
        except httpx.RequestError as exc:
            raise SourceUnreachableError(url, str(exc) or exc.__class__.__name__) from exc

        if not response.is_success:
            logger.info("search for %r returned HTTP %d", query, response.status_code)
            return []

        try:
            payload = response.json()
        except ValueError as exc:
            raise SourceUnreachableError(url, "invalid JSON response") from exc

        items = payload.get("skills") if isinstance(payload, dict) else None
        if not isinstance(items, list):
            return []
        results = [skill for skill in map(_parse_skill, items) if skill is not None]
        return results[:limit] if limit > 0 else results
