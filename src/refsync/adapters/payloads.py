"""Per-record decoding shared by the source adapters."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import BaseModel, ValidationError

if TYPE_CHECKING:
    from collections.abc import Iterable

log = getLogger(__name__)

RAW_PAYLOAD_LIMIT = 500


def describe_payload(raw: object, limit: int = RAW_PAYLOAD_LIMIT) -> str:
    text = repr(raw)
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


def decode_each[TModel: BaseModel](
    raw_records: Iterable[object],
    model: type[TModel],
    *,
    label: str,
) -> tuple[list[TModel], int]:
    """Validate every raw record against ``model``.

    Records that do not validate are logged with their payload and skipped; the
    second element of the result counts them.
    """

    decoded: list[TModel] = []
    malformed = 0
    for raw in raw_records:
        try:
            decoded.append(model.model_validate(raw))
        except ValidationError as exc:
            malformed += 1
            log.warning(
                f"Skipping malformed {label} ({exc.error_count()} errors): {describe_payload(raw)}"
            )
    return decoded, malformed
