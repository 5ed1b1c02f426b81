"""Local storage for product images downloaded from vendor sites.

Files land under ``<base_dir>/full/<product_id>/<image_id><ext>`` and are
served from ``/images/products/full/...``. The returned ``local_path`` is what
:func:`utils.product_media.resolve_product_image_src` prefers over remote URLs.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
import os
import shutil
from dataclasses import dataclass, field
from io import BytesIO
from pathlib import Path
from typing import Optional

import httpx
from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

USER_AGENT = "Mozilla/5.0 (compatible; SignatureQuoteCrawler/1.0)"
PUBLIC_PREFIX = "/images/products"

MIME_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
    "image/avif": ".avif",
}

# Форматы, которые Pillow гарантированно умеет открыть
_DECODABLE = {"image/jpeg": "JPEG", "image/jpg": "JPEG", "image/png": "PNG", "image/webp": "WEBP"}
_STORED_SUFFIXES = frozenset(MIME_EXTENSIONS.values())


class ImageStorageError(RuntimeError):
    """Raised when an image cannot be downloaded or fails validation."""


@dataclass
class ImageStorageConfig:
    base_dir: Path = field(
        default_factory=lambda: Path(os.getenv("IMAGE_STORAGE_DIR", "public/images/products"))
    )
    max_file_size_mb: float = 10
    allowed_mime_types: tuple[str, ...] = tuple(MIME_EXTENSIONS)
    cdn_base_url: Optional[str] = field(default_factory=lambda: os.getenv("CDN_BASE_URL"))
    max_images_per_product: int = 5
    download_delay: float = 0.5


@dataclass
class StoredImage:
    id: str
    url: str
    local_path: str
    alt: str
    is_primary: bool
    file_size: int
    mime_type: str
    width: Optional[int] = None
    height: Optional[int] = None


def generate_image_id(product_id: str, image_url: str) -> str:
    return hashlib.sha256(f"{product_id}-{image_url}".encode()).hexdigest()[:16]


def get_file_extension(mime_type: str) -> str:
    return MIME_EXTENSIONS.get(_base_mime(mime_type), ".jpg")


def _base_mime(mime_type: str) -> str:
    return mime_type.split(";", 1)[0].strip().lower()


def validate_image(
    data: bytes, mime_type: str, config: ImageStorageConfig
) -> tuple[Optional[int], Optional[int]]:
    """Check size, MIME type and that the bytes decode as the claimed format.

    Returns ``(width, height)`` when Pillow can read the format, otherwise
    ``(None, None)``.
    """

    size_mb = len(data) / (1024 * 1024)
    if size_mb > config.max_file_size_mb:
        raise ImageStorageError(
            f"Image too large: {size_mb:.2f}MB > {config.max_file_size_mb}MB"
        )

    mime = _base_mime(mime_type)
    if mime not in config.allowed_mime_types:
        raise ImageStorageError(f"Unsupported image type: {mime_type}")

    expected_format = _DECODABLE.get(mime)
    if expected_format is None:
        return None, None

    try:
        with Image.open(BytesIO(data)) as img:
            img.verify()
            if img.format != expected_format:
                raise ImageStorageError(
                    f"Invalid {expected_format} image format: got {img.format}"
                )
            return img.size
    except (UnidentifiedImageError, OSError, SyntaxError) as exc:
        raise ImageStorageError(f"Invalid {expected_format} image format") from exc


class ImageStorage:
    """Downloads product images and keeps them on local disk."""

    def __init__(self, config: Optional[ImageStorageConfig] = None):
        self.config = config or ImageStorageConfig()

    @property
    def base_dir(self) -> Path:
        return Path(self.config.base_dir)

    def initialize(self) -> None:
        for subdir in ("full", "thumbs"):
            (self.base_dir / subdir).mkdir(parents=True, exist_ok=True)

    def _public_path(self, product_id: str, file_name: str) -> str:
        relative = f"{PUBLIC_PREFIX}/full/{product_id}/{file_name}"
        if self.config.cdn_base_url:
            return f"{self.config.cdn_base_url.rstrip('/')}{relative}"
        return relative

    async def download_and_store_image(
        self,
        product_id: str,
        image_url: str,
        is_primary: bool = False,
        alt: Optional[str] = None,
    ) -> StoredImage:
        async with httpx.AsyncClient(timeout=20, follow_redirects=True) as client:
            response = await client.get(image_url, headers={"User-Agent": USER_AGENT})

        if response.status_code >= 400:
            raise ImageStorageError(
                f"Failed to download image: {response.status_code} {response.reason_phrase}"
            )

        data = response.content
        mime_type = _base_mime(response.headers.get("content-type") or "image/jpeg")
        width, height = validate_image(data, mime_type, self.config)

        image_id = generate_image_id(product_id, image_url)
        file_name = f"{image_id}{get_file_extension(mime_type)}"
        product_dir = self.base_dir / "full" / product_id
        target = product_dir / file_name

        if target.exists():
            logger.debug("Image %s already stored at %s", image_id, target)
        else:
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, _write_file, target, data)
            logger.debug("Image %s stored at %s (%d bytes)", image_id, target, len(data))

        return StoredImage(
            id=image_id,
            url=image_url,
            local_path=self._public_path(product_id, file_name),
            alt=alt or f"Product image for {product_id}",
            is_primary=is_primary,
            file_size=len(data),
            mime_type=mime_type,
            width=width,
            height=height,
        )

    async def download_product_images(
        self,
        product_id: str,
        image_urls: list[str],
        product_name: Optional[str] = None,
    ) -> list[StoredImage]:
        """Download up to ``max_images_per_product`` images; the first one is primary.

        Failed downloads are logged and skipped, so the result may be shorter
        than the input.
        """

        urls = image_urls[: self.config.max_images_per_product]
        images: list[StoredImage] = []

        for index, image_url in enumerate(urls):
            alt = f"{product_name} - Image {index + 1}" if product_name else None
            try:
                image = await self.download_and_store_image(
                    product_id, image_url, is_primary=index == 0, alt=alt
                )
            except (ImageStorageError, httpx.HTTPError) as exc:
                logger.warning(
                    "Failed to download image %s for product %s: %s", image_url, product_id, exc
                )
            else:
                images.append(image)

            if index < len(urls) - 1 and self.config.download_delay:
                await asyncio.sleep(self.config.download_delay)

        logger.info("Stored %d/%d images for product %s", len(images), len(urls), product_id)
        return images

    def delete_product_images(self, product_id: str) -> None:
        product_dir = self.base_dir / "full" / product_id
        try:
            shutil.rmtree(product_dir)
        except FileNotFoundError:
            return
        logger.info("Product images deleted: %s", product_id)

    def get_storage_stats(self) -> dict:
        total_images = 0
        total_bytes = 0
        if self.base_dir.exists():
            for path in self.base_dir.rglob("*"):
                if path.is_file() and path.suffix.lower() in _STORED_SUFFIXES:
                    total_images += 1
                    total_bytes += path.stat().st_size

        return {
            "total_images": total_images,
            "total_size_mb": round(total_bytes / (1024 * 1024), 2),
            "storage_dir": str(self.base_dir),
        }


def _write_file(target: Path, data: bytes) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(data)
