import hashlib
import threading
from pathlib import Path
from typing import Any, Dict, Optional
from pydantic import BaseModel

from slidefit.core.config import Settings, settings as default_settings
from slidefit.core.logger import get_logger
from slidefit.utils.file_manager import ensure_dir, write_atomic

logger = get_logger("image_cache")


class CacheConfig(BaseModel):
    directory: str = "cache_images"
    enabled: bool = True

    @classmethod
    def from_settings(cls, cfg: Settings = default_settings) -> "CacheConfig":
        return cls(directory=cfg.cache_dir, enabled=cfg.cache_enabled)


class ImageCache:
    """
    Content-addressed store for downloaded image bytes.

    Entries live at <directory>/<sha256(url)>.bin and never expire. Writes go
    through <key>.tmp and a rename, so an entry is either absent or complete.
    """

    def __init__(self, config: Optional[CacheConfig] = None):
        self.config = config or CacheConfig.from_settings()
        self.directory = Path(self.config.directory)
        self.enabled = self.config.enabled
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def initialize(self) -> Dict[str, Any]:
        """Create the cache directory; on failure the cache disables itself"""
        if not self.enabled:
            return {"success": False, "error": "cache disabled"}
        try:
            ensure_dir(self.directory)
        except OSError as e:
            self.enabled = False
            logger.warning(f"⚠️ Could not create cache directory {self.directory}: {e}. Caching disabled")
            return {"success": False, "error": str(e)}
        logger.info(f"Image cache ready at {self.directory}")
        return {"success": True, "path": str(self.directory)}

    @staticmethod
    def key_for(url: str) -> str:
        return hashlib.sha256(url.encode("utf-8")).hexdigest()

    def path_for(self, url: str) -> Path:
        return self.directory / f"{self.key_for(url)}.bin"

    def get(self, url: str) -> Optional[bytes]:
        if not self.enabled:
            return None
        path = self.path_for(url)
        if not path.is_file():
            return None
        try:
            data = path.read_bytes()
        except OSError as e:
            logger.warning(f"Cache read failed for {path}: {e}")
            return None
        if not data:
            return None
        logger.debug(f"Cache hit for {url}")
        return data

    def put(self, url: str, data: bytes) -> None:
        """Store bytes for url. Raises OSError when the entry cannot be written."""
        if not self.enabled:
            return
        if not data:
            raise ValueError("refusing to cache an empty payload")
        key = self.key_for(url)
        with self._lock_for(key):
            write_atomic(self.directory / f"{key}.bin", data, tmp=self.directory / f"{key}.tmp")
        logger.debug(f"Cached {len(data)} bytes for {url} as {key}.bin")

    def _lock_for(self, key: str) -> threading.Lock:
        with self._locks_guard:
            if key not in self._locks:
                self._locks[key] = threading.Lock()
            return self._locks[key]
