from __future__ import annotations

"""Lightweight HTTP client util with retry.

Uses stdlib urllib. Focus: GET JSON with bounded timeout and limited retries.
"""
import json
import logging
import time
import urllib.request
from typing import Any, Dict, Optional

logger = logging.getLogger("restaurant_fx.http")


class HttpError(Exception):
    pass


def get_json(
    url: str, *, timeout: float = 5.0, retries: int = 2, backoff: float = 0.5
) -> Dict[str, Any]:
    last_err: Optional[Exception] = None
    request = urllib.request.Request(url, headers={"Accept": "application/json"})
    for attempt in range(retries + 1):
        try:
            with urllib.request.urlopen(request, timeout=timeout) as resp:  # nosec B310
                if resp.status >= 400:
                    raise HttpError(f"HTTP {resp.status}")
                data = json.loads(resp.read().decode("utf-8"))
                if not isinstance(data, dict):
                    raise HttpError("response body is not a JSON object")
                return data
        except (
            OSError,  # URLError, HTTPError, timeouts, resets
            HttpError,
            ValueError,
        ) as e:  # ValueError for JSON decode
            last_err = e
            logger.debug("GET attempt %d failed: %s", attempt + 1, e)
            if attempt == retries:
                break
            time.sleep(backoff * (2**attempt))
    # The URL may embed an API key; keep it out of the message.
    raise HttpError(f"Failed to fetch JSON after {retries + 1} attempts: {last_err}")
