from __future__ import annotations

"""Lightweight HTTP client util with retry.

GET JSON with limited retries and exponential backoff, used by the rate
providers. API keys travel in URLs for both upstream services, so error
messages carry the host only.
"""
import json
import time
import urllib.request
import urllib.error
from typing import Any, Dict, Optional
from urllib.parse import urlsplit


class HttpError(Exception):
    pass


def _redact(url: str) -> str:
    parts = urlsplit(url)
    return f"{parts.scheme}://{parts.netloc}"


def get_json(
    url: str, *, timeout: float = 10.0, retries: int = 2, backoff: float = 0.5
) -> Dict[str, Any]:
    last_err: Optional[Exception] = None
    for attempt in range(retries + 1):
        try:
            with urllib.request.urlopen(url, timeout=timeout) as resp:  # nosec B310
                if resp.status >= 400:
                    raise HttpError(f"HTTP {resp.status} from {_redact(url)}")
                data = resp.read()
                payload = json.loads(data.decode("utf-8"))
                if not isinstance(payload, dict):
                    raise HttpError(f"unexpected JSON payload from {_redact(url)}")
                return payload
        except (
            urllib.error.URLError,
            TimeoutError,
            HttpError,
            ValueError,
        ) as e:  # ValueError for JSON decode
            last_err = e
            if attempt == retries:
                break
            time.sleep(backoff * (2**attempt))
    # str(URLError) may echo the full URL; keep the key out of logs
    reason = type(last_err).__name__ if last_err is not None else "unknown"
    raise HttpError(f"Failed to fetch JSON from {_redact(url)}: {reason}")
