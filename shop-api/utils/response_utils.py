"""
Response tools
"""
from typing import Any, Dict, Optional
from utils.time_utils import now_ms

def success_response(data: Any = None, message: Optional[str] = None,
                     pagination: Optional[Dict[str, Any]] = None, **extra) -> Dict[str, Any]:
    """Success envelope: {success, data, pagination?, message?, timestamp}"""
    body = {
        "success": True,
        "data": data,
    }
    if pagination is not None:
        body["pagination"] = pagination
    if message:
        body["message"] = message
    body.update(extra)
    body["timestamp"] = now_ms()
    return body
