from dataclasses import dataclass, field
from typing import List

from menusync.schemas.menu_sync import EntitySyncError, PlatformMenuPayload


@dataclass
class AdapterResponse:
    """what the platform said about a full-menu submission.

    `success` covers the call as a whole; `errors` lists entities the platform
    rejected individually while accepting the rest.
    """
    success: bool
    message: str = ""
    errors: List[EntitySyncError] = field(default_factory=list)


class PlatformAdapter:
    """base interface for delivery platform integrations.

    The platform only offers full replacement of a store's menu: there is no
    incremental update and no delete, clearing is an empty document.
    Implementations raise RemotePlatformError when the platform is unreachable.
    """
    name = "base"

    def submit_menu(self, tenant_id: str, payload: PlatformMenuPayload) -> AdapterResponse:  # pragma: no cover
        raise NotImplementedError
