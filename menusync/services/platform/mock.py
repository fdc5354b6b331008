import logging

from menusync.schemas.menu_sync import PlatformMenuPayload
from .base import AdapterResponse, PlatformAdapter

logger = logging.getLogger(__name__)


class MockPlatformAdapter(PlatformAdapter):
    """accepts everything and remembers the last document per tenant."""
    name = "mock"

    def __init__(self):
        self.submissions: list[tuple[str, PlatformMenuPayload]] = []

    def submit_menu(self, tenant_id: str, payload: PlatformMenuPayload) -> AdapterResponse:
        self.submissions.append((tenant_id, payload))
        logger.info(
            "mock platform accepted %s menu for tenant %s (%d menus, %d items)",
            payload.menu_type.value, tenant_id, len(payload.menus), len(payload.items),
        )
        return AdapterResponse(success=True, message="ok")

    def last_payload(self, tenant_id: str):
        for tid, payload in reversed(self.submissions):
            if tid == tenant_id:
                return payload
        return None
