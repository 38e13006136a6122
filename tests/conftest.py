import pytest
import requests

from slidefit.services.image_cache import CacheConfig, ImageCache
from slidefit.core.config import Settings
from tests.fakes import RecordingSleep


@pytest.fixture
def cfg(tmp_path):
    return Settings(cache_dir=str(tmp_path / "cache_images"))


@pytest.fixture
def cache(tmp_path):
    c = ImageCache(CacheConfig(directory=str(tmp_path / "cache_images")))
    assert c.initialize()["success"]
    return c


@pytest.fixture
def sleeper():
    return RecordingSleep()


@pytest.fixture
def transport_error():
    return requests.ConnectionError("connection reset by peer")
