"""RoadAmico API client.

This module defines a thin client around the RoadAmico REST API.  Each
resource operation is bound declaratively to an HTTP method and a
path template in ``RoadAmicoAPI.BINDINGS``; the public methods are
small wrappers that fill in the path parameters and body.  The client
uses the ``requests`` library internally.

Every method returns a tuple ``(data, error)``.  On success ``error``
is ``None``; on failure ``data`` is ``None`` (or an empty list for
collection calls) and ``error`` is a dictionary with ``status_code``
and ``message``.

Authentication is optional: pass ``token='<bearer token>'`` and it
will be sent in the ``Authorization`` header.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import requests


logger = logging.getLogger(__name__)

Result = Tuple[Optional[Any], Optional[Dict[str, Any]]]


@dataclass(frozen=True)
class ApiEndpoint:
    """An HTTP binding for one resource operation.

    Attributes:
        method: The HTTP method in upper case (``GET``, ``POST``, etc.).
        path: The URI template relative to the API prefix, e.g.
            ``/events/{id}``.
    """

    method: str
    path: str

    def format(self, **params: Any) -> str:
        return self.path.format(**params)


class RoadAmicoAPI:
    """Client for the lists, events and notifications resources."""

    BINDINGS: Dict[str, ApiEndpoint] = {
        # Lists
        "lists.index": ApiEndpoint("GET", "/lists"),
        "lists.show": ApiEndpoint("GET", "/lists/{id}"),
        "lists.create": ApiEndpoint("POST", "/lists"),
        "lists.update": ApiEndpoint("PUT", "/lists/{id}"),
        "lists.destroy": ApiEndpoint("DELETE", "/lists/{id}"),
        # Events
        "events.all": ApiEndpoint("GET", "/events"),
        "events.index": ApiEndpoint("GET", "/places/{id}/events"),
        "events.show": ApiEndpoint("GET", "/events/{id}"),
        "events.create": ApiEndpoint("POST", "/events"),
        "events.update": ApiEndpoint("PUT", "/events/{id}"),
        "events.cancel": ApiEndpoint("POST", "/events/{id}/cancel"),
        "events.join": ApiEndpoint("POST", "/events/{id}/join"),
        "events.unjoin": ApiEndpoint("POST", "/events/{id}/unjoin"),
        "events.message": ApiEndpoint("POST", "/events/{id}/messages"),
        # Notifications
        "notifications.index": ApiEndpoint("GET", "/notifications"),
    }

    def __init__(
        self,
        *,
        base_url: str,
        token: Optional[str] = None,
        prefix: str = "/api",
        session: Optional[requests.Session] = None,
        timeout: float = 15,
    ) -> None:
        """Initialise the API client.

        Args:
            base_url: Base URL of the server, e.g. ``https://example.com``.
            token: Optional bearer token sent with every request.
            prefix: Path prefix under which the API is mounted.
            session: Optional requests session.  If not supplied a
                session will be created automatically.
            timeout: Per-request timeout in seconds.
        """
        self.base_url = base_url.rstrip("/") + "/" + prefix.strip("/")
        self.token = token
        self.session = session or requests.Session()
        self.timeout = timeout

    # ------------------------------------------------------------------
    # Low level HTTP helpers
    # ------------------------------------------------------------------
    def _request(
        self, method: str, path: str, *, params: Dict[str, Any] | None = None,
        json_body: Any | None = None
    ) -> Result:
        """Perform an HTTP request and return ``(data, error)``."""
        url = f"{self.base_url}{path}"
        headers: Dict[str, str] = {}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        try:
            logger.debug("Sending %s request to %s", method, url)
            response = self.session.request(
                method=method,
                url=url,
                params=params,
                json=json_body,
                headers=headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
            if response.content:
                return response.json(), None
            return None, None
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else None
            message = ""
            if exc.response is not None:
                try:
                    err_json = exc.response.json()
                    message = err_json.get("detail") or err_json.get("message") or str(err_json)
                except ValueError:
                    message = exc.response.text
            if not message:
                message = str(exc)
            logger.error("API request failed (%s): %s", status, message)
            return None, {"status_code": status, "message": message}
        except requests.RequestException as exc:
            logger.error("API request failed: %s", exc)
            return None, {"status_code": None, "message": str(exc)}

    def call(
        self,
        name: str,
        *,
        params: Dict[str, Any] | None = None,
        json_body: Any | None = None,
        **path_params: Any,
    ) -> Result:
        """Invoke the binding called ``name``.

        Raises ``KeyError`` for an unknown binding name.
        """
        endpoint = self.BINDINGS[name]
        return self._request(
            endpoint.method,
            endpoint.format(**path_params),
            params=params,
            json_body=json_body,
        )

    def _call_list(self, name: str, **kwargs: Any) -> Tuple[List[Dict[str, Any]], Optional[Dict[str, Any]]]:
        data, error = self.call(name, **kwargs)
        if error:
            return [], error
        return (data if isinstance(data, list) else []), None

    # ------------------------------------------------------------------
    # List operations
    # ------------------------------------------------------------------
    def list_lists(self):
        return self._call_list("lists.index")

    def get_list(self, list_id: Any) -> Result:
        return self.call("lists.show", id=list_id)

    def create_list(self, payload: Dict[str, Any]) -> Result:
        return self.call("lists.create", json_body=payload)

    def update_list(self, list_id: Any, payload: Dict[str, Any]) -> Result:
        """Update a list.

        ``payload`` may contain populated entries exactly as returned by
        :meth:`get_list`; the server stores place ids only.
        """
        return self.call("lists.update", id=list_id, json_body=payload)

    def delete_list(self, list_id: Any) -> Tuple[bool, Optional[Dict[str, Any]]]:
        _, error = self.call("lists.destroy", id=list_id)
        return error is None, error

    # ------------------------------------------------------------------
    # Event operations
    # ------------------------------------------------------------------
    def list_events(self):
        """Return all events visible to the current user."""
        return self._call_list("events.all")

    def list_place_events(self, place_id: Any):
        return self._call_list("events.index", id=place_id)

    def get_event(self, event_id: Any) -> Result:
        return self.call("events.show", id=event_id)

    def create_event(self, payload: Dict[str, Any]) -> Result:
        return self.call("events.create", json_body=payload)

    def update_event(self, event_id: Any, payload: Dict[str, Any]) -> Result:
        return self.call("events.update", id=event_id, json_body=payload)

    def cancel_event(self, event_id: Any) -> Result:
        return self.call("events.cancel", id=event_id)

    def join_event(self, event_id: Any) -> Result:
        return self.call("events.join", id=event_id)

    def unjoin_event(self, event_id: Any) -> Result:
        return self.call("events.unjoin", id=event_id)

    def post_message(self, event_id: Any, text: str) -> Result:
        return self.call("events.message", id=event_id, json_body={"text": text})

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------
    def list_notifications(self, limit: int = 50, offset: int = 0):
        return self._call_list("notifications.index", params={"limit": limit, "offset": offset})
