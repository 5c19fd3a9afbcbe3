"""
groups_client.py
================
Thin wrapper around the Groups REST API.

Every call is a single request: no retry or backoff.  Room administration
endpoints authenticate with the room's admin code in the ``X-Admin-Code``
header; nothing else is required.

Usage
-----
::

    from santa_rooms.groups_client import GroupsClient

    client = GroupsClient("http://localhost:4000/api")
    room = client.create_group({"name": "Oficina", "ownerName": "Ana"})
    # {"joinCode": "K3X9QF", "adminCode": "...", "hostParticipant": {...}, ...}
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

from .codes import normalize_code

logger = logging.getLogger('santa.api')

_DEFAULT_TIMEOUT = 10  # seconds
ADMIN_HEADER = 'X-Admin-Code'


class GroupsAPIError(Exception):
    """Raised when the Groups API cannot be reached or returns an error status.

    ``status_code`` is ``None`` for network failures.
    """

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class GroupsClient:
    """Minimal Groups API client."""

    def __init__(self, base_url: str, timeout: int = _DEFAULT_TIMEOUT,
                 session: Optional[requests.Session] = None) -> None:
        if not base_url:
            raise ValueError("base_url must not be empty")
        self._base_url = base_url.rstrip('/')
        self._timeout = timeout
        self._session = session or requests.Session()

    # ------------------------------------------------------------------
    # Public helpers
    # ------------------------------------------------------------------

    def create_group(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Create a room.

        Returns::

            {
              "joinCode": "K3X9QF", "adminCode": "…", "name": "…",
              "hostParticipant": {"id": "…", "name": "…", "accessCode": "…"}
            }
        """
        return self._request('POST', '/groups', json=payload)

    def add_participant(self, join_code: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Join a room as a new participant.

        Returns ``{"participant": {"id", "name", ...}, "accessCode": "…"}``.
        """
        return self._request('POST', f'/groups/{normalize_code(join_code)}/participants',
                             json=payload)

    def get_group(self, join_code: str, admin_code: str) -> Dict[str, Any]:
        """Fetch the full room as its administrator.

        The result includes ``name``, ``ownerParticipantId`` and
        ``participants`` (a list of ``{id, name, ...}``).
        """
        return self._request('GET', f'/groups/{normalize_code(join_code)}',
                             admin_code=admin_code)

    def update_settings(self, join_code: str, admin_code: str,
                        settings: Dict[str, Any]) -> Dict[str, Any]:
        return self._request('PATCH', f'/groups/{normalize_code(join_code)}',
                             admin_code=admin_code, json=settings)

    def generate_assignments(self, join_code: str, admin_code: str) -> Dict[str, Any]:
        return self._request('POST', f'/groups/{normalize_code(join_code)}/assignments',
                             admin_code=admin_code)

    def delete_group(self, join_code: str, admin_code: str) -> None:
        self._request('DELETE', f'/groups/{normalize_code(join_code)}',
                      admin_code=admin_code)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _request(self, method: str, path: str, admin_code: Optional[str] = None,
                 json: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        url = self._base_url + path
        headers = {}
        if admin_code:
            headers[ADMIN_HEADER] = normalize_code(admin_code)
        try:
            resp = self._session.request(method, url, headers=headers, json=json,
                                         timeout=self._timeout)
        except requests.RequestException as exc:
            raise GroupsAPIError(f"Network error calling Groups API: {exc}") from exc

        if resp.status_code >= 400:
            message = self._error_message(resp)
            logger.warning("%s %s failed (HTTP %s): %s", method, path, resp.status_code, message)
            raise GroupsAPIError(message, status_code=resp.status_code)

        logger.debug("%s %s -> HTTP %s", method, path, resp.status_code)
        if resp.status_code == 204 or not resp.content:
            return {}
        try:
            body = resp.json()
        except ValueError as exc:
            raise GroupsAPIError(f"Invalid JSON from Groups API for {path}",
                                 status_code=resp.status_code) from exc
        return body if isinstance(body, dict) else {'data': body}

    @staticmethod
    def _error_message(resp: requests.Response) -> str:
        try:
            body = resp.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get('message'):
            return str(body['message'])
        return f"Groups API error {resp.status_code}"
