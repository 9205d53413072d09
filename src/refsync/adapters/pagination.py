"""Page conventions understood by :meth:`ResilientClient.fetch_paginated`."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from pydantic import BaseModel, ConfigDict, ValidationError


class PaginationError(RuntimeError):
    """Raised when a page does not have the shape its convention promises."""


class PaginationMeta(BaseModel):
    model_config = ConfigDict(extra="ignore")

    current_page: int | None = None
    last_page: int | None = None
    per_page: int | None = None
    total: int | None = None


class JsonApiPage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    data: list[object]
    meta: PaginationMeta | None = None


@dataclass(slots=True, frozen=True)
class Page:
    records: list[object]
    is_last: bool


class PageStrategy(Protocol):
    def page_params(self, page: int) -> dict[str, str | int]: ...

    def parse(self, payload: object, *, page: int) -> Page: ...


@dataclass(slots=True, frozen=True)
class JsonApiPagination:
    """``page[number]``/``page[size]`` requests answered by ``{data, meta}`` envelopes."""

    page_size: int = 100

    def page_params(self, page: int) -> dict[str, str | int]:
        return {"page[number]": page, "page[size]": self.page_size}

    def parse(self, payload: object, *, page: int) -> Page:
        try:
            envelope = JsonApiPage.model_validate(payload)
        except ValidationError as exc:
            raise PaginationError(f"Page {page} is not a data/meta envelope") from exc
        if not envelope.data:
            return Page(records=[], is_last=True)
        meta = envelope.meta
        if meta is None or meta.last_page is None:
            # Without meta only an empty page ends the walk.
            return Page(records=envelope.data, is_last=False)
        current = meta.current_page if meta.current_page is not None else page
        return Page(records=envelope.data, is_last=current >= meta.last_page)


@dataclass(slots=True, frozen=True)
class PlainListPagination:
    """Bare JSON arrays; a short page is the last one."""

    page_size: int = 50
    page_param: str = "page"
    size_param: str = "perPage"

    def page_params(self, page: int) -> dict[str, str | int]:
        return {self.page_param: page, self.size_param: self.page_size}

    def parse(self, payload: object, *, page: int) -> Page:
        if not isinstance(payload, list):
            raise PaginationError(f"Page {page} is not a JSON array")
        records: list[object] = list(payload)
        return Page(records=records, is_last=len(records) < self.page_size)
