"""Git-hosted corpus client: one tree listing, then a bounded fan-out of raw file reads."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from refsync.adapters.http_resilience import UpstreamError

from .schema import TreeResponse

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from refsync.adapters.http_resilience import ResilientClient

log = getLogger(__name__)

BLOB = "blob"


class GitCorpusClient:
    """List and read files of ``repository`` at ``branch``.

    Both clients are expected to share one limiter so the fan-out and the tree call
    draw from the same bucket.
    """

    def __init__(
        self,
        *,
        api: ResilientClient,
        raw: ResilientClient,
        repository: str,
        branch: str,
        concurrency: int = 10,
    ) -> None:
        self._api = api
        self._raw = raw
        self.repository = repository
        self.branch = branch
        self.concurrency = max(1, concurrency)

    async def list_paths(self, predicate: Callable[[str], bool]) -> list[str]:
        payload = await self._api.fetch_json(
            f"/repos/{self.repository}/git/trees/{self.branch}",
            params={"recursive": "1"},
        )
        try:
            tree = TreeResponse.model_validate(payload)
        except ValidationError as exc:
            raise UpstreamError(f"Unexpected tree listing for {self.repository}") from exc
        if tree.truncated:
            log.warning(f"Tree listing of {self.repository}@{self.branch} is truncated")
        return sorted(
            entry.path for entry in tree.tree if entry.type == BLOB and predicate(entry.path)
        )

    async def fetch_files(self, paths: Sequence[str]) -> tuple[list[tuple[str, object]], int]:
        """Fetch and decode ``paths`` concurrently.

        Returns the decoded files in ``paths`` order and the number of files that could
        not be fetched or decoded; those are skipped, not retried.
        """

        semaphore = asyncio.Semaphore(self.concurrency)
        results: list[object | None] = [None] * len(paths)

        async def fetch_one(index: int, path: str) -> None:
            async with semaphore:
                try:
                    results[index] = await self._raw.fetch_json(
                        f"/{self.repository}/{self.branch}/{path}"
                    )
                except (UpstreamError, httpx.HTTPError) as exc:
                    log.warning(f"Skipping {path}: {exc}")

        async with asyncio.TaskGroup() as group:
            for index, path in enumerate(paths):
                group.create_task(fetch_one(index, path))

        files = [
            (path, payload)
            for path, payload in zip(paths, results, strict=True)
            if payload is not None
        ]
        return files, len(paths) - len(files)
