"""
Shared HTTP call path for the model clients.

Maps transport and status failures onto the gateway error kinds so both
capabilities fail the same way.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from .errors import ModelError, ModelTimeout, ModelUnavailable

logger = logging.getLogger("patents.http")

# Status codes worth retrying later; everything else in 4xx is permanent.
_TRANSIENT_STATUS = {408, 409, 429}


async def post_json(
    url: str,
    payload: Dict[str, Any],
    headers: Dict[str, str],
    timeout: float,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Dict[str, Any]:
    """
    POST ``payload`` and return the decoded JSON body.

    Raises
    ------
    ModelTimeout
        If the call exceeds ``timeout`` seconds.
    ModelUnavailable
        On connection failures, 5xx and throttling responses.
    ModelError
        On other error statuses or a body that is not a JSON object.
    """
    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            response = await client.post(url, json=payload, headers=headers)
            response.raise_for_status()
    except httpx.TimeoutException as exc:
        logger.error("Model request timed out after %.1fs: %s", timeout, url)
        raise ModelTimeout(f"Model request timed out after {timeout}s") from exc
    except httpx.HTTPStatusError as exc:
        status = exc.response.status_code
        logger.error("Model request failed with HTTP %d: %s", status, url)
        if status >= 500 or status in _TRANSIENT_STATUS:
            raise ModelUnavailable(f"Model backend returned HTTP {status}") from exc
        raise ModelError(f"Model backend rejected request with HTTP {status}") from exc
    except httpx.HTTPError as exc:
        logger.error(
            "Model request failed (%s): %s",
            type(exc).__name__,
            str(exc),
        )
        raise ModelUnavailable(
            f"Model backend unreachable: {type(exc).__name__}"
        ) from exc

    try:
        data = response.json()
    except ValueError as exc:
        raise ModelError("Model response is not valid JSON.") from exc

    if not isinstance(data, dict):
        raise ModelError("Model response must be a JSON object.")

    return data
