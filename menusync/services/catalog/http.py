import logging
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, List, Optional

import httpx

from menusync.core.config import settings
from menusync.schemas.catalog import CatalogCategory, CatalogItem, CatalogModifierOption
from menusync.services.menu_sync.errors import CatalogUnavailableError
from .base import CatalogService

logger = logging.getLogger(__name__)

_CENTS = Decimal(100)


def to_minor_units(value: Any) -> int:
    """catalog prices are decimal major units (12.5 or "12.50"); the engine works in minor units."""
    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        raise CatalogUnavailableError(f"catalog returned an invalid price: {value!r}")
    try:
        amount = Decimal(str(value))
    except InvalidOperation as e:
        raise CatalogUnavailableError(f"catalog returned an invalid price: {value!r}") from e
    if not amount.is_finite() or amount < 0:
        raise CatalogUnavailableError(f"catalog returned an invalid price: {value!r}")
    return int((amount * _CENTS).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def _records(data: Any, what: str) -> List[Dict[str, Any]]:
    if data is None:
        return []
    if not isinstance(data, list) or not all(isinstance(row, dict) for row in data):
        raise CatalogUnavailableError(f"catalog returned malformed {what}")
    return data


class HttpCatalogService(CatalogService):
    """talks to the item-management service over HTTP.

    Responses are wrapped as {"data": ...}; item listings are paginated as
    {"items": [...], "pagination": {"page", "limit", "total", "pages"}}. Any
    transport failure, HTTP error status or unreadable body surfaces as
    CatalogUnavailableError.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.Client] = None,
        page_size: Optional[int] = None,
    ):
        self.base_url = (base_url or settings.CATALOG_SERVICE_URL).rstrip("/")
        self.timeout = timeout or settings.CATALOG_TIMEOUT_SECONDS
        self.page_size = page_size or settings.CATALOG_PAGE_SIZE
        self._client = client

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.base_url}{path}"
        try:
            if self._client is not None:
                resp = self._client.get(url, params=params, timeout=self.timeout)
            else:
                with httpx.Client(timeout=self.timeout) as client:
                    resp = client.get(url, params=params)
            resp.raise_for_status()
            body = resp.json()
        except httpx.HTTPError as e:
            logger.error("catalog request %s failed: %s", path, e)
            raise CatalogUnavailableError(f"catalog service unavailable: {e}") from e
        except ValueError as e:
            logger.error("catalog request %s returned invalid JSON", path)
            raise CatalogUnavailableError("catalog service returned invalid JSON") from e
        if isinstance(body, dict) and "data" in body:
            return body["data"]
        return body

    def _get_paged(self, path: str, params: Dict[str, Any], what: str) -> List[Dict[str, Any]]:
        rows: List[Dict[str, Any]] = []
        page = 1
        while True:
            data = self._get(path, params={**params, "page": page, "limit": self.page_size})
            if data is None or isinstance(data, list):
                # unpaginated listing
                return rows + _records(data, what)
            if not isinstance(data, dict):
                raise CatalogUnavailableError(f"catalog returned malformed {what}")
            batch = _records(data.get("items"), what)
            rows.extend(batch)
            pagination = data.get("pagination") or {}
            try:
                pages = int(pagination.get("pages") or page)
            except (TypeError, ValueError) as e:
                raise CatalogUnavailableError(f"catalog returned malformed pagination for {what}") from e
            if not batch or page >= pages:
                return rows
            page += 1

    def list_categories(self, tenant_id: str) -> List[CatalogCategory]:
        data = self._get("/api/v1/categories", params={"tenantId": tenant_id})
        if isinstance(data, dict):
            data = data.get("categories", data.get("items"))
        return [
            CatalogCategory(
                id=str(row["id"]),
                name=row.get("name") or row.get("displayName") or "",
                display_order=int(row.get("displayOrder") or 0),
            )
            for row in _records(data, "categories")
            if row.get("id") is not None
        ]

    def list_items(self, tenant_id: str, category_id: Optional[str] = None) -> List[CatalogItem]:
        params: Dict[str, Any] = {"tenantId": tenant_id}
        if category_id is not None:
            params["categoryId"] = category_id
        return [
            CatalogItem(
                pos_item_id=str(row["id"]),
                name=row.get("name") or "",
                description=row.get("description"),
                base_price=to_minor_units(row.get("basePrice")),
                category_id=str(row["categoryId"]) if row.get("categoryId") is not None else None,
                is_active=bool(row.get("isActive", True)),
            )
            for row in self._get_paged("/api/v1/items", params, "items")
            if row.get("id") is not None
        ]

    def list_modifier_options(self, pos_item_id: str) -> List[CatalogModifierOption]:
        groups = _records(self._get(f"/api/v1/items/{pos_item_id}/modifier-groups"), "modifier groups")
        options: List[CatalogModifierOption] = []
        for group in groups:
            for opt in _records(group.get("options"), "modifier options"):
                price = opt.get("priceModifier", opt.get("price"))
                options.append(CatalogModifierOption(
                    pos_item_id=str(pos_item_id),
                    modifier_group_id=str(group["id"]),
                    modifier_group_name=group.get("name") or group.get("displayName") or "",
                    modifier_option_id=str(opt["id"]),
                    name=opt.get("name") or opt.get("displayName") or opt.get("value") or "",
                    base_price=to_minor_units(price),
                ))
        logger.debug("loaded %d modifier options for item %s", len(options), pos_item_id)
        return options
