# storefront/core/assets.py
"""
Product image resolution.

The cart and catalog code only ever ask an AssetResolver for an image and
fall back to a fixed placeholder when nothing is found. The resolver is
injected (see deps.py), so tests and other deployments can swap it.

Static layout (relative to ASSET_DIR):
    products/<sku>-1-product.webp   catalog card image
    products/<sku>-1-cart.webp      cart thumbnail
"""
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Literal, Protocol
from urllib.parse import urlparse

AssetVariant = Literal["product", "cart"]

FALLBACK_IMAGE = "/static/img/fallback.png"
DETAIL_PLACEHOLDER = "/placeholder.png"

_IMAGE_EXT = re.compile(r"\.(jpg|jpeg|png|gif|webp|svg)$", re.IGNORECASE)


@dataclass(frozen=True)
class AssetHandle:
    url: str


@dataclass(frozen=True)
class AssetNotFound:
    path: str


class AssetResolver(Protocol):
    def resolve_asset(self, sku: int | str, variant: AssetVariant) -> AssetHandle | AssetNotFound: ...


def asset_path(sku: int | str, variant: AssetVariant) -> str:
    """Object path of a product image inside the asset directory."""
    return f"products/{sku}-1-{variant}.webp"


class StaticAssetResolver:
    """Resolve product images from a local static directory served under base_url."""

    def __init__(self, asset_dir: str | Path, base_url: str = "/static"):
        self.asset_dir = Path(asset_dir)
        self.base_url = base_url.rstrip("/")

    def resolve_asset(self, sku: int | str, variant: AssetVariant) -> AssetHandle | AssetNotFound:
        path = asset_path(sku, variant)
        if (self.asset_dir / path).is_file():
            return AssetHandle(url=f"{self.base_url}/{path}")
        return AssetNotFound(path=path)


def image_url(
    resolver: AssetResolver,
    sku: int | str,
    variant: AssetVariant,
    fallback: str = FALLBACK_IMAGE,
) -> str:
    """Resolved image url for a product, or the placeholder when resolution fails."""
    found = resolver.resolve_asset(sku, variant)
    if isinstance(found, AssetHandle):
        return found.url
    return fallback


def is_valid_image_url(url: str | None) -> bool:
    """
    Basic validation for externally supplied image urls:
      - http(s) scheme, or a relative path
      - an image file extension
    """
    if not url or not isinstance(url, str):
        return False
    try:
        parsed = urlparse(url.strip())
    except ValueError:
        return False
    if parsed.scheme not in ("", "http", "https"):
        return False
    return bool(_IMAGE_EXT.search(parsed.path))
