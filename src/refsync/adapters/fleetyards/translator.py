"""Translate FleetYards listings into image records."""

from __future__ import annotations

from typing import TYPE_CHECKING

from refsync.domain.model import ImageSet, PaintImageRecord, VehicleImageRecord

if TYPE_CHECKING:
    from .schema import Media, ModelPayload, PaintPayload


def store_images(media: Media | None) -> ImageSet | None:
    if media is None or media.store_image is None:
        return None
    image = media.store_image
    images = ImageSet(
        image_url=image.source,
        small=image.small,
        medium=image.medium,
        large=image.large,
    )
    return None if images.is_empty else images


def translate_model(payload: ModelPayload) -> VehicleImageRecord | None:
    images = store_images(payload.media)
    if images is None:
        return None
    return VehicleImageRecord(slug=payload.slug, images=images)


def translate_paint(payload: PaintPayload, *, vehicle_slug: str) -> PaintImageRecord | None:
    images = store_images(payload.media)
    if images is None:
        return None
    return PaintImageRecord(vehicle_slug=vehicle_slug, name=payload.name, images=images)
