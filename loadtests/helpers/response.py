"""Error extraction for load test failure messages.

The rentals API answers failures with ``{"error": ..., "code": "..."}``.
``error`` is either a message or a mapping of field to a list of
messages. Anything FastAPI rejects before the app sees it still arrives
as ``{"detail": [...]}``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from requests import Response

_MAX = 300


def _flatten(messages) -> str:
    if isinstance(messages, (list, tuple)):
        return ", ".join(str(m) for m in messages)
    return str(messages)


def extract_error_detail(response: Response) -> str:
    """Return a compact, single-line description of an error response."""
    try:
        body = response.json()
    except ValueError:
        text = getattr(response, "text", "") or ""
        return text[:_MAX] or "(empty response body)"

    if not isinstance(body, dict):
        return str(body)[:_MAX]

    if "error" in body:
        error = body["error"]
        if isinstance(error, dict):
            detail = " | ".join(f"{field}: {_flatten(msgs)}" for field, msgs in error.items())
        else:
            detail = str(error)
        code = body.get("code")
        return f"[{code}] {detail}" if code else detail

    if isinstance(body.get("detail"), list):
        parts = []
        for err in body["detail"]:
            loc = ".".join(str(p) for p in err.get("loc", []))
            msg = err.get("msg", str(err))
            parts.append(f"{loc}: {msg}" if loc else msg)
        return " | ".join(parts)

    return str(body)[:_MAX]
