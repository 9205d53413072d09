"""Game-data corpus source adapter: paints."""

from __future__ import annotations

import fnmatch
from logging import getLogger
from typing import TYPE_CHECKING, Final

from pydantic import ValidationError

from refsync.adapters.http_resilience import LoopLimiters, ResilientClient
from refsync.adapters.payloads import describe_payload
from refsync.domain.model import PaintRecord, Source, SyncCategory
from refsync.domain.ports.fetching import FetchResult, UnsupportedCategoryError

from .client import GitCorpusClient
from .schema import PaintFile
from .translator import translate_paint

if TYPE_CHECKING:
    from refsync.adapters.http_resilience import ClientFactory, RequestLimiter
    from refsync.config.sources import ScunpackedConfig
    from refsync.domain.ports.fetching import FetchContext, SourceAdapter

log = getLogger(__name__)

PAINT_FILE_PATTERN: Final = "items/paint_*.json"


def is_paint_file(path: str) -> bool:
    return fnmatch.fnmatchcase(path.lower(), PAINT_FILE_PATTERN)


class ScunpackedAdapter:
    def __init__(
        self,
        config: ScunpackedConfig,
        *,
        client_factory: ClientFactory = ResilientClient,
        limiter: RequestLimiter | None = None,
    ) -> None:
        self._config = config
        self._client_factory = client_factory
        self._limiter = limiter
        # One bucket for the tree API and every raw file read.
        self._limiters = LoopLimiters(config.ratelimit)

    @property
    def source(self) -> Source:
        return Source.SCUNPACKED

    @property
    def categories(self) -> frozenset[SyncCategory]:
        return frozenset({SyncCategory.PAINTS})

    async def fetch_category(
        self,
        category: SyncCategory,
        context: FetchContext,
    ) -> FetchResult[object]:
        if category is not SyncCategory.PAINTS:
            raise UnsupportedCategoryError(self.source, category)

        config = self._config
        limiter = self._limiter or self._limiters.current()
        async with (
            self._client_factory(config.api, limiter=limiter) as api,
            self._client_factory(config.raw, limiter=limiter) as raw,
        ):
            corpus = GitCorpusClient(
                api=api,
                raw=raw,
                repository=config.repository,
                branch=config.branch,
                concurrency=config.concurrency,
            )
            paths = await corpus.list_paths(is_paint_file)
            log.info(f"Found {len(paths)} paint files in {config.repository}@{config.branch}")
            files, failed = await corpus.fetch_files(paths)

        paints: list[PaintRecord] = []
        malformed = failed
        for path, payload in files:
            try:
                paint = translate_paint(PaintFile.model_validate(payload))
            except ValidationError as exc:
                malformed += 1
                log.warning(
                    f"Skipping malformed paint file {path} ({exc.error_count()} errors): "
                    f"{describe_payload(payload)}"
                )
                continue
            if paint is not None:
                paints.append(paint)

        log.info(f"Parsed {len(paints)} paints, {malformed} files unreadable")
        return FetchResult(records=list[object](paints), malformed=malformed)


if TYPE_CHECKING:
    from refsync.config.sources import get_scunpacked_config

    _adapter_check: SourceAdapter = ScunpackedAdapter(get_scunpacked_config())
