"""LinkShelf API client.

A thin wrapper around the LinkShelf HTTP API using ``requests``.  It
covers what the web front-end does with the API: log in (which also
registers new accounts), list links by category, and add, edit or
remove the caller's own links.

Every public method returns a tuple ``(data, error)``.  On success
``error`` is ``None``; on failure ``data`` is empty and ``error`` is a
dictionary with keys ``status_code`` and ``message``.  The client never
raises for HTTP or transport errors.

A successful :meth:`LinkShelfAPI.login` stores the returned token and
sends it as ``Authorization: Bearer <token>`` on later calls.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

import requests


logger = logging.getLogger(__name__)

Error = Dict[str, Any]


class LinkShelfAPI:
    """Client for the LinkShelf API."""

    def __init__(
        self,
        *,
        base_url: str,
        token: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: float = 15,
    ) -> None:
        """Initialise the API client.

        Args:
            base_url: Base URL of the API, e.g. ``http://localhost:8080``.
            token: Optional bearer token from an earlier login.
            session: Optional requests session.  If not supplied a
                session will be created automatically.
            timeout: Per-request timeout in seconds.
        """
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.session = session or requests.Session()
        self.timeout = timeout

    # ------------------------------------------------------------------
    # Low level HTTP helpers
    # ------------------------------------------------------------------
    def _request(
        self, method: str, path: str, *, params: Dict[str, Any] | None = None,
        json_body: Any | None = None
    ) -> Tuple[Optional[Any], Optional[Error]]:
        """Perform an HTTP request to the API.

        Returns:
            A tuple ``(data, error)`` where ``data`` is the parsed JSON
            body on success.
        """
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
        except requests.RequestException as exc:
            logger.error("API request failed: %s", exc)
            return None, {"status_code": None, "message": str(exc)}

        if response.status_code >= 400:
            message = ""
            try:
                err_json = response.json()
                if isinstance(err_json, dict):
                    message = err_json.get("error") or err_json.get("detail") or err_json.get("message") or ""
                if not message:
                    message = str(err_json)
            except ValueError:
                message = response.text
            logger.error("API request failed (%s): %s", response.status_code, message)
            return None, {"status_code": response.status_code, "message": message}

        if not response.content:
            return None, None
        try:
            return response.json(), None
        except ValueError:
            return None, {"status_code": response.status_code, "message": "invalid JSON in response"}

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------
    def login(
        self, email: str, password: str, display_name: Optional[str] = None
    ) -> Tuple[Optional[Dict[str, Any]], Optional[Error]]:
        """Log in (registering the account on first use) and keep the token.

        Returns:
            A tuple ``(result, error)`` where ``result`` holds ``user``,
            ``token`` and ``created``.
        """
        body: Dict[str, Any] = {"email": email, "password": password}
        if display_name:
            body["displayName"] = display_name
        data, error = self._request("POST", "/api/login", json_body=body)
        if error:
            return None, error
        self.token = data.get("token")
        return data, None

    def logout(self) -> None:
        """Forget the stored token.  Tokens are stateless, so nothing is sent."""
        self.token = None

    # ------------------------------------------------------------------
    # Link operations
    # ------------------------------------------------------------------
    def list_links(self, category: Optional[str] = None) -> Tuple[List[Dict[str, Any]], Optional[Error]]:
        """Retrieve links, optionally for a single category."""
        params = {"category": category} if category else None
        data, error = self._request("GET", "/api/links", params=params)
        if error:
            return [], error
        if isinstance(data, dict) and isinstance(data.get("items"), list):
            return data["items"], None
        return [], None

    def create_link(
        self, category: str, label: str, url: str
    ) -> Tuple[Optional[Dict[str, Any]], Optional[Error]]:
        """Create a link owned by the logged-in user."""
        data, error = self._request(
            "POST", "/api/links", json_body={"category": category, "label": label, "url": url}
        )
        if error:
            return None, error
        return data.get("link"), None

    def update_link(
        self,
        link_id: Any,
        *,
        label: Optional[str] = None,
        url: Optional[str] = None,
        category: Optional[str] = None,
    ) -> Tuple[Optional[Dict[str, Any]], Optional[Error]]:
        """Change any of label, url or category of one of the user's links."""
        body = {
            key: value
            for key, value in (("label", label), ("url", url), ("category", category))
            if value
        }
        data, error = self._request("PUT", f"/api/links/{link_id}", json_body=body)
        if error:
            return None, error
        return data.get("link"), None

    def delete_link(self, link_id: Any) -> Tuple[bool, Optional[Error]]:
        """Delete one of the user's links.

        Returns:
            A tuple ``(success, error)``.
        """
        data, error = self._request("DELETE", f"/api/links/{link_id}")
        if error:
            return False, error
        return bool(data and data.get("ok")), None

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------
    def health(self) -> Tuple[bool, Optional[Error]]:
        data, error = self._request("GET", "/health")
        if error:
            return False, error
        return bool(data and data.get("ok")), None
