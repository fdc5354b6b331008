from menusync.core.config import settings
from .base import PlatformAdapter
from .http import HttpPlatformAdapter
from .mock import MockPlatformAdapter

_mock = MockPlatformAdapter()


def get_platform_adapter() -> PlatformAdapter:
    provider = (settings.PLATFORM_PROVIDER or "mock").lower()
    if provider == "http":
        return HttpPlatformAdapter()
    # default to mock
    return _mock
