"""Client side of the feed: fetching batches and scroll-triggered pagination.

``FeedClient`` wraps the HTTP endpoints. ``FeedCursor`` holds what the
presentation layer has loaded and decides when to fetch more: once the
active item is within ``LOAD_AHEAD`` items of the end. Only one fetch is
in flight at a time; triggers that arrive meanwhile are dropped.
"""

from __future__ import annotations

import math
from typing import Any

import httpx
import structlog

from tilt.config import get_settings

logger = structlog.get_logger()

LOAD_AHEAD = 2


class FeedClient:
    """Thin async wrapper over the feed and interaction endpoints."""

    def __init__(self, http: httpx.AsyncClient, base_path: str = "/api/v1/problems") -> None:
        self.http = http
        self.base_path = base_path.rstrip("/")

    async def fetch(self, limit: int, exclude: list[str] | None = None) -> list[dict[str, Any]]:
        """One feed batch. Raises httpx.HTTPError on transport or status failures."""
        params: dict[str, Any] = {"limit": limit}
        if exclude:
            params["exclude"] = ",".join(exclude)
        response = await self.http.get(self.base_path, params=params)
        response.raise_for_status()
        return list(response.json().get("problems") or [])

    async def react(self, interaction_id: str, reaction: str | None) -> None:
        response = await self.http.post(
            f"{self.base_path}/reaction",
            json={"interactionId": interaction_id, "reaction": reaction},
        )
        response.raise_for_status()

    async def set_solved(self, interaction_id: str, solved: bool) -> dict[str, Any]:
        response = await self.http.post(
            f"{self.base_path}/solved",
            json={"interactionId": interaction_id, "solved": solved},
        )
        response.raise_for_status()
        return response.json()


def index_for_scroll(scroll_top: float, item_height: float, count: int) -> int | None:
    """Full-screen item under the viewport for a scroll offset, or None when out of range."""
    if item_height <= 0 or count <= 0:
        return None
    index = math.floor(scroll_top / item_height + 0.5)
    if 0 <= index < count:
        return index
    return None


class FeedCursor:
    """Loaded problems, seen ids, the active item and the load-more gate."""

    def __init__(
        self,
        client: FeedClient,
        initial_limit: int | None = None,
        page_limit: int | None = None,
    ) -> None:
        settings = get_settings()
        self.client = client
        self.initial_limit = initial_limit or settings.feed_initial_limit
        self.page_limit = page_limit or settings.feed_page_limit
        self.problems: list[dict[str, Any]] = []
        self._seen: dict[str, None] = {}
        self.active_index = 0
        self.busy = False
        self.has_more = True

    @property
    def seen_ids(self) -> list[str]:
        """Every problem id served so far, in serve order."""
        return list(self._seen)

    def _append(self, batch: list[dict[str, Any]]) -> int:
        fresh = [p for p in batch if p.get("id") not in self._seen]
        for p in fresh:
            self._seen[p["id"]] = None
        self.problems.extend(fresh)
        return len(fresh)

    async def load_initial(self) -> int:
        """First batch. Returns how many problems were added."""
        try:
            batch = await self.client.fetch(self.initial_limit)
        except httpx.HTTPError:
            logger.warning("feed_initial_load_failed", exc_info=True)
            return 0
        added = self._append(batch)
        if added == 0:
            self.has_more = False
        return added

    def should_load_more(self) -> bool:
        return (
            self.has_more
            and not self.busy
            and self.active_index >= len(self.problems) - LOAD_AHEAD
        )

    async def maybe_load_more(self) -> bool:
        """Fetch the next page if the gate is open. Returns True if a fetch ran."""
        if not self.should_load_more():
            return False

        self.busy = True
        try:
            batch = await self.client.fetch(self.page_limit, exclude=self.seen_ids)
        except httpx.HTTPError:
            logger.warning("feed_load_more_failed", seen=len(self._seen), exc_info=True)
            return True
        finally:
            self.busy = False

        if self._append(batch) == 0:
            self.has_more = False
        return True

    async def set_active_index(self, index: int) -> bool:
        """Move the active item; may trigger a load. Returns True if a fetch ran."""
        if 0 <= index < len(self.problems):
            self.active_index = index
        return await self.maybe_load_more()

    async def on_scroll(self, scroll_top: float, item_height: float) -> bool:
        """Track the item under the viewport. Returns True if a fetch ran."""
        index = index_for_scroll(scroll_top, item_height, len(self.problems))
        if index is None or index == self.active_index:
            return False
        return await self.set_active_index(index)

    async def react(self, index: int, reaction: str | None) -> None:
        problem = self.problems[index]
        await self.client.react(problem["interactionId"], reaction)
        problem["reaction"] = reaction

    async def set_solved(self, index: int, solved: bool) -> dict[str, Any]:
        problem = self.problems[index]
        result = await self.client.set_solved(problem["interactionId"], solved)
        problem["solved"] = result.get("solved", solved)
        return result
