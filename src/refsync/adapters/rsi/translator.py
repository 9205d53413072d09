"""Translate storefront resources into listings with size-variant image URLs."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Final

from refsync.domain.model import ImageSet, StoreListing

if TYPE_CHECKING:
    from .schema import BrowseResource

MEDIA_HOST: Final = "https://media.robertsspaceindustries.com"
_MEDIA_ID = re.compile(r"media\.robertsspaceindustries\.com/([^/]+)/")


def build_image_set(url: str) -> ImageSet:
    """Derive size variants from a legacy CDN url; newer CDN urls are used as-is."""

    match = _MEDIA_ID.search(url)
    if match is None:
        return ImageSet(image_url=url, small=url, medium=url, large=url)
    base = f"{MEDIA_HOST}/{match.group(1)}"
    return ImageSet(
        image_url=f"{base}/store_large.jpg",
        small=f"{base}/store_small.jpg",
        medium=f"{base}/store_large.jpg",
        large=f"{base}/store_hub_large.jpg",
    )


def translate_resource(resource: BrowseResource) -> StoreListing | None:
    """Return ``None`` for resources without a name or a thumbnail."""

    name = resource.display_name
    image_url = resource.image_url
    if name is None or image_url is None:
        return None
    return StoreListing(
        name=name,
        images=build_image_set(image_url),
        is_package=resource.is_package,
        url=resource.url,
    )
