from __future__ import annotations

import http.client
import json
import logging
import socket
from typing import Any, Dict, List, Optional, Union
from urllib.error import HTTPError, URLError
from urllib.parse import quote
from urllib.request import Request, urlopen

from src.config import LEAGUE_API_BASE_URL, LEAGUE_API_TIMEOUT_SECONDS

LOGGER = logging.getLogger(__name__)

Key = Union[int, str]


class StoreError(Exception):
    """A call to the league store failed (transport, HTTP status or bad JSON)."""

    def __init__(self, operation: str, status: Optional[int] = None, detail: str = ""):
        self.operation = operation
        self.status = status
        self.detail = detail
        message = f"{operation} failed"
        if status is not None:
            message += f" (HTTP {status})"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class LeagueStoreClient:
    """JSON client for the league store's player, deck and match collections."""

    HEADERS = {
        "Accept": "application/json",
        "User-Agent": "commander-league/0.1",
    }

    def __init__(self, base_url: str = LEAGUE_API_BASE_URL, timeout_seconds: float = LEAGUE_API_TIMEOUT_SECONDS):
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds

    @staticmethod
    def _key(value: Key) -> str:
        return quote(str(value).strip(), safe="")

    def _url(self, collection: str, key: Optional[Key] = None) -> str:
        if key is None:
            return f"{self.base_url}/{collection}"
        return f"{self.base_url}/{collection}/{self._key(key)}"

    def _request_json(self, method: str, url: str, payload: Optional[Dict[str, Any]] = None) -> Any:
        headers = dict(self.HEADERS)
        body = None
        if payload is not None:
            body = json.dumps(payload).encode("utf-8")
            headers["Content-Type"] = "application/json"
        req = Request(url, data=body, headers=headers, method=method)
        operation = f"{method} {url}"

        try:
            with urlopen(req, timeout=self.timeout_seconds) as resp:
                raw = resp.read()
        except HTTPError as exc:
            detail = ""
            try:
                detail = exc.read().decode("utf-8", errors="replace")[:200]
            except (OSError, ValueError):
                detail = str(exc.reason or "")
            LOGGER.warning("Store call %s returned HTTP %s", operation, exc.code)
            raise StoreError(operation, exc.code, detail) from exc
        except (URLError, socket.timeout, TimeoutError) as exc:
            LOGGER.warning("Store call %s failed: %s", operation, exc)
            raise StoreError(operation, None, str(getattr(exc, "reason", exc))) from exc
        except (OSError, http.client.HTTPException) as exc:
            # Resets and truncated bodies surface here rather than as URLError.
            LOGGER.warning("Store call %s failed: %s", operation, exc)
            raise StoreError(operation, None, str(exc) or type(exc).__name__) from exc

        text = raw.decode("utf-8", errors="replace").strip() if raw else ""
        if not text:
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise StoreError(operation, None, "response was not valid JSON") from exc

    def _list(self, collection: str) -> List[Dict[str, Any]]:
        data = self._request_json("GET", self._url(collection))
        if data is None:
            return []
        if not isinstance(data, list):
            raise StoreError(f"GET {self._url(collection)}", None, "expected a JSON array")
        return [item for item in data if isinstance(item, dict)]

    # --- Players ---

    def list_players(self) -> List[Dict[str, Any]]:
        return self._list("player")

    def create_player(self, payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return self._request_json("POST", self._url("player"), payload)

    def update_player(self, key: Key, payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return self._request_json("PUT", self._url("player", key), payload)

    def delete_player(self, key: Key) -> None:
        self._request_json("DELETE", self._url("player", key))

    # --- Decks ---

    def list_decks(self) -> List[Dict[str, Any]]:
        return self._list("deck")

    def get_deck(self, key: Key) -> Optional[Dict[str, Any]]:
        return self._request_json("GET", self._url("deck", key))

    def create_deck(self, payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return self._request_json("POST", self._url("deck"), payload)

    def update_deck(self, key: Key, payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return self._request_json("PUT", self._url("deck", key), payload)

    def delete_deck(self, key: Key) -> None:
        self._request_json("DELETE", self._url("deck", key))

    # --- Matches ---

    def list_matches(self) -> List[Dict[str, Any]]:
        return self._list("match")

    def create_match(self, payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return self._request_json("POST", self._url("match"), payload)

    def delete_match(self, key: Key) -> None:
        self._request_json("DELETE", self._url("match", key))
