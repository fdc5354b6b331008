from .base import AdapterResponse, PlatformAdapter
from .factory import get_platform_adapter
from .http import HttpPlatformAdapter
from .mock import MockPlatformAdapter

__all__ = [
    "AdapterResponse",
    "PlatformAdapter",
    "HttpPlatformAdapter",
    "MockPlatformAdapter",
    "get_platform_adapter",
]
