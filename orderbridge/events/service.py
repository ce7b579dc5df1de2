"""
Recherche d'événements et sélection de places (Order API: content, performance, map, order).
"""
import logging
import re
from typing import Any, Dict, Optional

from orderbridge.errors import BackendCallFailed, NotFound, OrderBridgeError
from orderbridge.upstream.client import BackendClient, require_path
from orderbridge.upstream.payloads import action, data_section, envelope

logger = logging.getLogger(__name__)

SEARCH_OBJECT = "mySearchResults"
_SOFT_ERROR = re.compile("error", re.IGNORECASE)


def page_method(move_page: Optional[int]) -> str:
    if move_page == 1:
        return "nextPage"
    if move_page == -1:
        return "prevPage"
    return "search"


def _soft_error(body: Any) -> bool:
    """Certains backends répondent 200 avec une charge d'erreur."""
    if not isinstance(body, dict):
        return False
    return bool(body.get("errorCode")) or bool(_SOFT_ERROR.search(str(body.get("message") or "")))


def upcoming(client: BackendClient, move_page: Optional[int] = None) -> Dict[str, Any]:
    payload = envelope(
        actions=[action(page_method(move_page))],
        set_fields={
            "SearchCriteria::object_type_filter": "P",
            "SearchCriteria::search_criteria": "",
            "SearchCriteria::search_from": "",
            "SearchCriteria::search_to": "",
        },
        get=[
            "SearchResultsInfo::total_records",
            "SearchResultsInfo::current_page",
            "SearchResultsInfo::total_pages",
            "SearchResults",
        ],
        object_name=SEARCH_OBJECT,
    )
    result = client.send(require_path("UPCOMING_PATH"), payload)
    if not result.ok:
        raise BackendCallFailed("Upcoming failed", result)
    if _soft_error(result.data):
        logger.warning("events.upcoming soft_error")
        raise OrderBridgeError("Upstream error", details=result.data, status_code=400)

    events = list(data_section(result.data, "SearchResults").values())
    info = {
        "totalRecords": result.field("SearchResultsInfo::total_records"),
        "currentPage": result.field("SearchResultsInfo::current_page"),
        "totalPages": result.field("SearchResultsInfo::total_pages"),
    }
    logger.info("events.upcoming count=%s", len(events))
    return {"events": events, "page": info}


def performance(client: BackendClient, performance_id: str) -> Dict[str, Any]:
    payload = envelope(
        actions=[action("load", {"Performance": {"performance_id": performance_id}})],
        get=["Performance"],
        object_name=None,
    )
    result = client.send(require_path("PERFORMANCE_PATH"), payload)
    if not result.ok:
        raise BackendCallFailed("performance.load failed", result)
    perf = data_section(result.data, "Performance")
    if not perf:
        raise NotFound("Performance not found", details=result.data)
    return perf


def best_available(client: BackendClient, performance_id: str, price_type_id: str, num_seats: Any) -> Any:
    payload = envelope(
        actions=[action("getBestAvailable", {
            "perfVector": [performance_id],
            "reqRows": "1",
            f"reqNum::{price_type_id}": str(num_seats),
            "optNum": "2",
        })],
        get=["Admissions", "AvailablePaymentMethods", "DeliveryMethodDetails"],
    )
    result = client.send(require_path("ORDER_PATH"), payload)
    if not result.ok:
        raise BackendCallFailed("getBestAvailable failed", result)
    logger.info("events.best_available performance_id=%s seats=%s", performance_id, num_seats)
    return result.data


def pricing(client: BackendClient, performance_id: str) -> Dict[str, Any]:
    params = {"performance_ids": [performance_id]}
    payload = envelope(
        actions=[action("loadBestAvailable", params), action("loadAvailability", params)],
        get=["pricetypes"],
        object_name=None,
    )
    result = client.send(require_path("MAP_PATH"), payload)
    if not result.ok:
        raise BackendCallFailed("loadMap(pricing) failed", result)
    return {"pricetypes": result.field("pricetypes")}
