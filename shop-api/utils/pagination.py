"""
Pagination helpers

Offset pagination is used by every list endpoint. The product listing also
supports keyset (cursor) pagination: the cursor is an opaque url-safe base64
JSON blob holding the sort value of the boundary row together with its id, so
rows that share a sort value are never skipped or repeated.
"""
import base64
import binascii
import json
import math
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional, Tuple
from urllib.parse import urlencode

from utils.exceptions import ValidationError

DEFAULT_LIMIT = 50
MAX_LIMIT = 100

@dataclass
class PaginationParams:
    page: int
    limit: int
    offset: int

def _to_int(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None

def get_pagination_params(page: Any = None, limit: Any = None,
                          default_limit: int = DEFAULT_LIMIT,
                          max_limit: int = MAX_LIMIT) -> PaginationParams:
    """Normalize page/limit; junk falls back to defaults, limit is clamped to [1, max_limit]"""
    page_num = _to_int(page)
    if page_num is None or page_num < 1:
        page_num = 1

    limit_num = _to_int(limit)
    if limit_num is None or limit_num < 1:
        limit_num = default_limit
    limit_num = min(limit_num, max_limit)

    return PaginationParams(page=page_num, limit=limit_num, offset=(page_num - 1) * limit_num)

def _page_url(base_url: str, page: int, limit: int, query: Optional[Dict[str, Any]]) -> str:
    params = {k: v for k, v in (query or {}).items() if v is not None and k not in ("page", "limit")}
    params["page"] = page
    params["limit"] = limit
    return f"{base_url}?{urlencode(params, doseq=True)}"

def build_pagination_result(total_count: int, page: int, limit: int,
                            base_url: Optional[str] = None,
                            query: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Pagination metadata, with HATEOAS links when a base URL is given"""
    total_pages = math.ceil(total_count / limit) if limit else 0
    result = {
        "total_count": total_count,
        "total_pages": total_pages,
        "current_page": page,
        "limit": limit,
        "has_next_page": page < total_pages,
        "has_prev_page": page > 1,
    }

    if base_url:
        links = {
            "first": _page_url(base_url, 1, limit, query),
            "last": _page_url(base_url, max(total_pages, 1), limit, query),
        }
        if result["has_prev_page"]:
            links["prev"] = _page_url(base_url, page - 1, limit, query)
        if result["has_next_page"]:
            links["next"] = _page_url(base_url, page + 1, limit, query)
        result["links"] = links

    return result

def _encode_value(value: Any) -> Dict[str, Any]:
    if isinstance(value, datetime):
        return {"t": "dt", "v": value.isoformat()}
    if isinstance(value, Decimal):
        return {"t": "dec", "v": str(value)}
    return {"t": "raw", "v": value}

def _decode_value(payload: Dict[str, Any]) -> Any:
    kind = payload.get("t")
    value = payload.get("v")
    if kind == "dt":
        return datetime.fromisoformat(value)
    if kind == "dec":
        return Decimal(value)
    return value

def encode_cursor(value: Any, row_id: str) -> str:
    """Opaque cursor for the row with sort value ``value`` and id ``row_id``"""
    raw = json.dumps({"s": _encode_value(value), "id": str(row_id)}, separators=(",", ":"))
    return base64.urlsafe_b64encode(raw.encode("utf-8")).decode("ascii").rstrip("=")

def decode_cursor(cursor: str) -> Tuple[Any, str]:
    """Inverse of encode_cursor; raises ValidationError on anything malformed"""
    try:
        padded = cursor + "=" * (-len(cursor) % 4)
        payload = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")).decode("utf-8"))
        return _decode_value(payload["s"]), str(payload["id"])
    except (binascii.Error, UnicodeError, ValueError, KeyError, TypeError, AttributeError):
        raise ValidationError("Invalid cursor")
