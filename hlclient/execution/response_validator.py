"""
ResponseValidator: gate every exchange response before its results are read.

A bulk order/cancel can come back as status "ok" while individual items
failed; treating that as success would silently drop the failed items.
"""

from __future__ import annotations

from typing import Any, Dict

from hlclient.errors import ApiRequestError
from hlclient.signing.canonical import BULK_TYPES


def _has_item_error(statuses: Any) -> bool:
    return any(isinstance(status, dict) and "error" in status for status in statuses or [])


def validate_response(response: Dict[str, Any]) -> Dict[str, Any]:
    """
    Return `response` unchanged if it is a full success.

    Raises ApiRequestError for an "err" envelope, or for a bulk response where
    any per-item status is an error object. The error carries the whole
    envelope.
    """
    if not isinstance(response, dict):
        raise ApiRequestError({"status": "err", "response": f"Malformed response: {response!r}"})
    if response.get("status") == "err":
        raise ApiRequestError(response)
    body = response.get("response")
    if isinstance(body, dict) and body.get("type") in BULK_TYPES:
        statuses = (body.get("data") or {}).get("statuses")
        if _has_item_error(statuses):
            raise ApiRequestError(response)
    return response
