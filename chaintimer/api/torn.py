#!/usr/bin/env python3
"""
⛓️ Torn API client - faction chain status.

Only the success/error shape of the response matters to the engine:
- ``{"chain": {"current", "timeout", "cooldown"}}`` -> RemoteSnapshot
- ``{"error": {"code", "error"|"message"}}`` -> TornProviderError
- anything else -> None (benign, nothing to apply)
"""

import logging
import re
from typing import Any, Dict, Optional

import requests

from ..constants import TORN_API_BASE_URL
from ..core.state import RemoteSnapshot
from .http import get_http_session

logger = logging.getLogger("chain.torn")

CHAIN_ENDPOINT = f"{TORN_API_BASE_URL}/faction/"

_KEY_PARAM = re.compile(r"""(key=)[^&\s'")]+""")


class TornApiError(Exception):
    """Base error for chain fetches."""


class TornTransportError(TornApiError):
    """Network failure or a response that could not be parsed."""


class TornProviderError(TornApiError):
    """Well-formed error payload reported by the Torn API."""

    def __init__(self, code: Optional[int], message: str):
        super().__init__(message)
        self.code = code
        self.message = message


def _coerce_count(payload: Dict[str, Any], key: str) -> int:
    value = payload.get(key, 0)
    if isinstance(value, bool):
        raise TornTransportError(f"Malformed chain field '{key}': {value!r}")
    try:
        return max(0, int(value))
    except (TypeError, ValueError):
        raise TornTransportError(f"Malformed chain field '{key}': {value!r}") from None


def parse_chain_payload(data: Any) -> Optional[RemoteSnapshot]:
    """Turn a decoded JSON body into a snapshot.

    Args:
        data: Decoded response body

    Returns:
        RemoteSnapshot, or None when the body carries no chain data

    Raises:
        TornProviderError: The body carries an ``error`` object
        TornTransportError: The chain object is malformed
    """
    if not isinstance(data, dict):
        return None

    error = data.get("error")
    if error is not None:
        if isinstance(error, dict):
            message = error.get("message") or error.get("error") or "Unknown API error"
            code = error.get("code")
        else:
            message, code = str(error), None
        raise TornProviderError(code, str(message))

    chain = data.get("chain")
    if not isinstance(chain, dict):
        return None

    return RemoteSnapshot(
        current_hits=_coerce_count(chain, "current"),
        timeout_seconds=_coerce_count(chain, "timeout"),
        cooldown_seconds=_coerce_count(chain, "cooldown"),
    )


def redact_api_key(text: str, api_key: str = "") -> str:
    """Mask the key in error text; requests puts the full query string in its messages."""
    text = _KEY_PARAM.sub(r"\1***", text)
    if api_key:
        text = text.replace(api_key, "***")
    return text


def fetch_chain(api_key: str, session: Optional[requests.Session] = None) -> Optional[RemoteSnapshot]:
    """Fetch the faction chain status for ``api_key``.

    Args:
        api_key: Torn API key
        session: HTTP session override (defaults to the shared session)

    Returns:
        RemoteSnapshot, or None if the response had no chain data
    """
    http = session or get_http_session()
    try:
        response = http.get(CHAIN_ENDPOINT, params={"selections": "chain", "key": api_key})
    except requests.exceptions.RequestException as exc:
        raise TornTransportError(redact_api_key(str(exc), api_key)) from exc

    try:
        data = response.json()
    except ValueError as exc:
        if response.status_code >= 400:
            raise TornTransportError(f"HTTP {response.status_code}") from exc
        raise TornTransportError(f"Invalid JSON response: {exc}") from exc

    return parse_chain_payload(data)
