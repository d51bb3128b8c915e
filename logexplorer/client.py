"""HTTP client for the log query API."""

import asyncio
import logging
from typing import Optional

import jsonschema
import requests

from logexplorer.errors import MalformedQuery, MalformedResponse, TransportError

logger = logging.getLogger(__name__)

ROWS_SCHEMA = {
    "type": "object",
    "properties": {
        "result": {"type": "array", "items": {"type": "object"}},
    },
    "required": ["result"],
}

COUNT_ITEM_SCHEMA = {
    "type": "object",
    "properties": {"count": {"type": "integer", "minimum": 0}},
    "required": ["count"],
}

COUNT_SCHEMA = {
    "type": "object",
    "properties": {
        "result": {
            "oneOf": [
                COUNT_ITEM_SCHEMA,
                {"type": "array", "items": COUNT_ITEM_SCHEMA, "minItems": 1},
            ]
        },
    },
    "required": ["result"],
}

_rows_validator = jsonschema.Draft202012Validator(ROWS_SCHEMA)
_count_validator = jsonschema.Draft202012Validator(COUNT_SCHEMA)


def _error_message(body) -> Optional[str]:
    """Pull the backend's error text out of a response body, if any."""
    if not isinstance(body, dict) or not body.get("error"):
        return None
    error = body["error"]
    if isinstance(error, dict):
        return str(error.get("message") or error)
    return str(error)


def parse_rows(body) -> list[dict]:
    """Validate a page response and return its rows."""
    message = _error_message(body)
    if message:
        raise MalformedQuery(message)
    errors = list(_rows_validator.iter_errors(body))
    if errors:
        raise MalformedResponse(f"unexpected rows response: {errors[0].message}")
    return body["result"]


def parse_count(body) -> Optional[int]:
    """Accept ``{result: [{count}]}`` and ``{result: {count}}``; anything else is None."""
    message = _error_message(body)
    if message:
        raise MalformedQuery(message)
    if not _count_validator.is_valid(body):
        return None
    result = body["result"]
    if isinstance(result, list):
        return result[0]["count"]
    return result["count"]


class LogApiClient:
    """Fetches rows and counts from ``{base_url}/projects/{project}/logs/{source}``.

    The blocking ``requests`` calls run in a worker thread so the event loop
    keeps serving user actions and poll ticks while a request is out.
    """

    def __init__(
        self,
        base_url: str,
        project: str,
        source: str,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.project = project
        self.source = source
        self.timeout = timeout
        self._session = session or requests.Session()

    @property
    def rows_url(self) -> str:
        return f"{self.base_url}/projects/{self.project}/logs/{self.source}"

    @property
    def count_url(self) -> str:
        return f"{self.rows_url}/count"

    async def fetch_rows(self, params: dict[str, str]) -> list[dict]:
        body = await asyncio.to_thread(self._get, self.rows_url, params)
        return parse_rows(body)

    async def fetch_count(self, params: dict[str, str]) -> Optional[int]:
        body = await asyncio.to_thread(self._get, self.count_url, params)
        return parse_count(body)

    def _get(self, url: str, params: dict[str, str]):
        logger.debug("GET %s params=%s", url, sorted(params))
        try:
            response = self._session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise TransportError(f"request to {url} failed: {e}") from e

        if response.status_code == 400:
            raise MalformedQuery(_error_message(_json_or_none(response)) or response.text)
        if response.status_code >= 400:
            raise TransportError(
                f"{url} returned HTTP {response.status_code}",
                status_code=response.status_code,
            )

        body = _json_or_none(response)
        if body is None:
            raise MalformedResponse(f"{url} returned a non-JSON body")
        return body

    def close(self) -> None:
        self._session.close()


def _json_or_none(response: requests.Response):
    try:
        return response.json()
    except ValueError:
        return None
