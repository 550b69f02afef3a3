"""Product image pipeline.

Downloads the best available source image, validates it, and hands it to
the image host. Nothing here retries: a failed step leaves the image
pointing at the original source URL (or empty, if the download was not an
image at all).
"""

import hashlib
import re
import time
from dataclasses import dataclass
from typing import Optional, Protocol, Union

import httpx
import structlog

from fashion.config import settings
from fashion.core.exceptions import UploadError
from fashion.scrapers.utils.images import brand_cdn_url, upgrade_image_url
from fashion.scrapers.utils.normalizer import slugify

logger = structlog.get_logger(__name__)

CLOUDINARY_TRANSFORM = "f_auto,q_auto,w_800,h_800,c_pad,b_rgb:f5f5f7,e_shadow:40"
MIN_IMAGE_BYTES = 5000
REVIEW_IMAGE_BYTES = 50000

IMAGE_OK = "ok"
IMAGE_NEEDS_REVIEW = "needs-review"
IMAGE_MISSING = "missing"

_CLOUDINARY_URL = re.compile(r"^cloudinary://(\d+):([^@]+)@(.+)$")

FETCH_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36",
}


def is_valid_image_buffer(data: Optional[bytes]) -> bool:
    """PNG, JPEG or WEBP of at least MIN_IMAGE_BYTES."""
    if not data or len(data) < MIN_IMAGE_BYTES:
        return False
    is_png = data[:2] == b"\x89P"
    is_jpeg = data[:2] == b"\xff\xd8"
    is_webp = len(data) > 11 and data[8:10] == b"WE"
    return is_png or is_jpeg or is_webp


def determine_image_status(data: Optional[bytes], image_url: str) -> str:
    """Small images are likely thumbnails and get flagged for review."""
    if not image_url or not data:
        return IMAGE_MISSING
    if len(data) < REVIEW_IMAGE_BYTES:
        return IMAGE_NEEDS_REVIEW
    return IMAGE_OK


class ImageUploader(Protocol):
    """Image hosting boundary."""

    @property
    def enabled(self) -> bool:
        ...

    async def upload(self, source: Union[bytes, str], public_id: str) -> Optional[str]:
        """Upload bytes or a URL; return the permanent URL or None."""
        ...


class NullUploader:
    """Used when no image host is configured."""

    enabled = False

    async def upload(self, source: Union[bytes, str], public_id: str) -> Optional[str]:
        return None


class CloudinaryUploader:
    """Signed uploads to Cloudinary's REST API.

    Configured from a ``cloudinary://<api_key>:<api_secret>@<cloud_name>``
    URL; a malformed URL leaves the uploader disabled.
    """

    API_BASE = "https://api.cloudinary.com/v1_1"

    def __init__(
        self,
        cloudinary_url: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ):
        self.cloud_name = ""
        self._api_key = ""
        self._api_secret = ""
        self._client = client
        self._timeout = timeout or settings.IMAGE_TIMEOUT_SECONDS

        match = _CLOUDINARY_URL.match((cloudinary_url or "").strip())
        if match:
            self._api_key, self._api_secret, self.cloud_name = match.groups()
        elif cloudinary_url:
            logger.warning("cloudinary_url_invalid")

    @property
    def enabled(self) -> bool:
        return bool(self.cloud_name)

    def delivery_url(self, public_id: str) -> str:
        return f"https://res.cloudinary.com/{self.cloud_name}/image/upload/{CLOUDINARY_TRANSFORM}/{public_id}"

    def sign(self, params: dict) -> str:
        """Cloudinary signature: sha1 of sorted ``k=v`` pairs plus the secret."""
        to_sign = "&".join(f"{k}={params[k]}" for k in sorted(params))
        return hashlib.sha1((to_sign + self._api_secret).encode("utf-8")).hexdigest()

    async def _post(self, data: dict, files: Optional[dict]) -> httpx.Response:
        url = f"{self.API_BASE}/{self.cloud_name}/image/upload"
        if self._client is not None:
            return await self._client.post(url, data=data, files=files, timeout=self._timeout)
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            return await client.post(url, data=data, files=files)

    async def upload(self, source: Union[bytes, str], public_id: str) -> Optional[str]:
        if not self.enabled:
            return None

        params = {
            "invalidate": "true",
            "overwrite": "true",
            "public_id": public_id,
            "timestamp": str(int(time.time())),
        }
        data = {**params, "api_key": self._api_key, "signature": self.sign(params)}
        files = None
        if isinstance(source, bytes):
            files = {"file": (public_id.rsplit("/", 1)[-1], source)}
        else:
            data["file"] = source

        try:
            response = await self._post(data, files)
            if response.status_code != 200:
                raise UploadError(public_id, f"HTTP {response.status_code}")
        except (httpx.HTTPError, UploadError) as e:
            logger.warning("image_upload_failed", public_id=public_id, error=str(e))
            return None

        return self.delivery_url(public_id)


def build_uploader(cloudinary_url: Optional[str] = None) -> ImageUploader:
    """Uploader for the configured host, or a no-op."""
    url = settings.CLOUDINARY_URL if cloudinary_url is None else cloudinary_url
    uploader = CloudinaryUploader(url) if url else None
    if uploader is not None and uploader.enabled:
        logger.info("image_host_configured", cloud_name=uploader.cloud_name)
        return uploader
    return NullUploader()


@dataclass
class ImageResult:
    image: str = ""
    original_image: str = ""
    image_status: str = IMAGE_MISSING


class ImageService:
    """Fetches, validates and uploads product images."""

    def __init__(
        self,
        uploader: Optional[ImageUploader] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ):
        self.uploader = uploader or NullUploader()
        self._client = client
        self._timeout = timeout or settings.IMAGE_TIMEOUT_SECONDS

    async def fetch(self, url: str) -> bytes:
        """Download ``url``. Raises httpx.HTTPError on failure."""
        if self._client is not None:
            response = await self._client.get(url, headers=FETCH_HEADERS, timeout=self._timeout)
        else:
            async with httpx.AsyncClient(timeout=self._timeout, follow_redirects=True) as client:
                response = await client.get(url, headers=FETCH_HEADERS)
        response.raise_for_status()
        return response.content

    async def try_brand_cdn(self, brand: str, style_code: str) -> Optional[tuple]:
        """(url, bytes) from the brand's own CDN when it has a valid image."""
        url = brand_cdn_url(brand, style_code)
        if not url:
            return None
        try:
            data = await self.fetch(url)
        except httpx.HTTPError as e:
            logger.debug("brand_cdn_miss", brand=brand, error=str(e))
            return None
        if not is_valid_image_buffer(data):
            return None
        logger.info("brand_cdn_hit", brand=brand, url=url)
        return url, data

    async def process_image(
        self,
        image_url: str,
        product_id: str,
        name: str = "",
        brand: str = "",
        style_code: str = "",
    ) -> ImageResult:
        """Run one product image through the pipeline.

        Args:
            image_url: Source image URL from the store page
            product_id: Catalog product id, used for the hosted public id
            name: Product name, slugged into the public id
            brand: Brand, for brand-CDN lookup
            style_code: Style code, for brand-CDN lookup

        Returns:
            ImageResult with the image to display, the original source URL
            and a status of ok/needs-review/missing
        """
        public_id = f"picks/{product_id}-{slugify(name)}" if name else f"picks/{product_id}"

        brand_hit = await self.try_brand_cdn(brand, style_code)
        if brand_hit:
            cdn_source, data = brand_hit
            hosted = await self.uploader.upload(data, public_id)
            return ImageResult(image=hosted or cdn_source, original_image=cdn_source, image_status=IMAGE_OK)

        if not image_url:
            return ImageResult()

        source = upgrade_image_url(image_url)
        try:
            data = await self.fetch(source)
        except httpx.HTTPError as e:
            logger.warning("image_download_failed", url=source, error=str(e))
            return ImageResult(image=source, original_image=source, image_status=IMAGE_NEEDS_REVIEW)

        if not is_valid_image_buffer(data):
            logger.warning("image_validation_failed", url=source, size=len(data))
            return ImageResult(image="", original_image=source, image_status=IMAGE_MISSING)

        status = determine_image_status(data, source)
        hosted = await self.uploader.upload(data, public_id)
        return ImageResult(image=hosted or source, original_image=source, image_status=status)
