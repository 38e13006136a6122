import random
import re
import time
from typing import Callable, Dict, Optional
from urllib.parse import urlparse
import requests

from slidefit.core.config import Settings, settings as default_settings
from slidefit.core.logger import get_logger
from slidefit.services.image_cache import CacheConfig, ImageCache
from slidefit.services.slide_schema import FetchOutcome

logger = get_logger("image_fetcher")

URL_RE = re.compile(r"^https?://.+", re.IGNORECASE)

# Statuses that will not change on retry
PERMANENT_STATUSES = {401, 403, 404}


def normalize_url(url: str) -> str:
    """Ask Cloudinary for a JPEG instead of a format negotiated from Accept"""
    url = url.strip()
    if "cloudinary.com" in url and "f_auto" in url:
        url = url.replace("f_auto", "f_jpg")
    return url


def referer_for(url: str) -> str:
    host = (urlparse(url).hostname or "").lower()
    if host.endswith("gstatic.com") or "google" in host:
        return "https://www.google.com/"
    return f"https://{host}/"


class ImageFetcher:
    """
    Downloads image bytes over HTTP(S) with retries, going through the cache first.

    sleep is injected so tests can record backoff delays instead of waiting.
    """

    def __init__(
        self,
        cache: Optional[ImageCache] = None,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
        cfg: Settings = default_settings,
    ):
        self.cache = cache
        self.session = session or requests.Session()
        self.sleep = sleep
        self.timeout = (cfg.http_connect_timeout, cfg.http_read_timeout)
        self.max_bytes = cfg.max_image_bytes
        self.max_attempts = max(1, cfg.fetch_max_attempts)
        self.backoff_base_ms = cfg.backoff_base_ms
        self.backoff_jitter_ms = cfg.backoff_jitter_ms
        self.base_headers = {
            "User-Agent": cfg.user_agent,
            "Accept": cfg.accept,
            "Accept-Language": cfg.accept_language,
            "Accept-Encoding": cfg.accept_encoding,
        }

    @classmethod
    def from_settings(cls, cfg: Settings = default_settings, **kwargs) -> "ImageFetcher":
        """Build a fetcher with an initialized cache; a cache that fails to start is dropped"""
        cache = ImageCache(CacheConfig.from_settings(cfg))
        result = cache.initialize()
        return cls(cache=cache if result["success"] else None, cfg=cfg, **kwargs)

    def fetch(self, url: str) -> FetchOutcome:
        """
        Return the bytes behind url.

        Non-HTTP URLs, HTML pages, oversized bodies and 401/403/404 are skipped.
        429 and 5xx are retried; if they persist the outcome is "failed". A
        transport error on the final attempt is re-raised.
        """
        url = normalize_url(url)
        if not URL_RE.match(url):
            logger.warning(f"Skipping non-HTTP image reference: {url!r}")
            return FetchOutcome.skipped(url, "not an http(s) URL")

        if self.cache is not None:
            cached = self.cache.get(url)
            if cached is not None:
                return FetchOutcome.ok(url, cached, from_cache=True)

        outcome = self._download(url)
        if outcome.is_ok and self.cache is not None:
            try:
                self.cache.put(url, outcome.data)
            except OSError as e:
                logger.warning(f"Could not cache {url}: {e}")
        return outcome

    def _download(self, url: str) -> FetchOutcome:
        headers: Dict[str, str] = dict(self.base_headers, Referer=referer_for(url))
        last_error: Optional[requests.RequestException] = None
        last_status: Optional[int] = None

        for attempt in range(1, self.max_attempts + 1):
            try:
                response = self.session.get(
                    url, headers=headers, timeout=self.timeout, stream=True, allow_redirects=True
                )
                try:
                    last_status = response.status_code
                    outcome = self._classify(url, response)
                finally:
                    response.close()
            except requests.RequestException as e:
                last_error = e
                logger.info(f"🌐 Attempt {attempt}/{self.max_attempts} for {url} failed: {e}")
                outcome = None

            if outcome is not None:
                return outcome
            if attempt < self.max_attempts:
                self._backoff(attempt)

        if last_error is not None:
            raise last_error
        logger.warning(f"❌ Giving up on {url} after {self.max_attempts} attempts [HTTP {last_status}]")
        return FetchOutcome.failed(url, f"HTTP {last_status} after {self.max_attempts} attempts", last_status)

    def _classify(self, url: str, response: requests.Response) -> Optional[FetchOutcome]:
        """Turn a response into an outcome, or None when the request should be retried"""
        sc = response.status_code
        if 200 <= sc < 300:
            content_type = response.headers.get("Content-Type", "")
            if "text/html" in content_type.lower():
                logger.warning(f"Skipping {url}: server returned HTML [{content_type}]")
                return FetchOutcome.skipped(url, f"HTML instead of image ({content_type})", sc)
            return self._read_body(url, response)

        if sc in PERMANENT_STATUSES:
            logger.warning(f"🚫 Skipping {url}: HTTP {sc}")
            return FetchOutcome.skipped(url, f"HTTP {sc}", sc)

        if sc == 429 or 500 <= sc < 600:
            logger.info(f"⏰ HTTP {sc} for {url}, will retry")
            return None

        logger.warning(f"Skipping {url}: unexpected HTTP {sc}")
        return FetchOutcome.skipped(url, f"HTTP {sc}", sc)

    def _read_body(self, url: str, response: requests.Response) -> FetchOutcome:
        sc = response.status_code
        declared = response.headers.get("Content-Length")
        if declared and declared.isdigit() and int(declared) > self.max_bytes:
            logger.warning(f"Skipping {url}: declared size {declared} bytes exceeds limit")
            return FetchOutcome.skipped(url, "image too large", sc)

        chunks = []
        total = 0
        for chunk in response.iter_content(chunk_size=8192):
            if not chunk:
                continue
            total += len(chunk)
            if total > self.max_bytes:
                logger.warning(f"Skipping {url}: body exceeds {self.max_bytes} bytes")
                return FetchOutcome.skipped(url, "image too large", sc)
            chunks.append(chunk)

        body = b"".join(chunks)
        if not body:
            logger.warning(f"Skipping {url}: empty body")
            return FetchOutcome.skipped(url, "empty body", sc)
        logger.info(f"✅ Downloaded {len(body)} bytes from {url}")
        return FetchOutcome.ok(url, body, status_code=sc)

    def _backoff(self, attempt: int) -> None:
        delay_ms = self.backoff_base_ms * attempt + random.uniform(0, self.backoff_jitter_ms)
        self.sleep(delay_ms / 1000.0)
