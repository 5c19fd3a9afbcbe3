"""Room flows: call the Groups API and keep the local room cache in step."""
import logging
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, Optional, Set

from .codes import normalize_code
from .groups_client import GroupsAPIError, GroupsClient
from .realtime import GROUP_DELETED, GroupSubscription, RealtimeGateway
from .store import RoomStore

logger = logging.getLogger('santa.rooms')

EVENT_DELETED = 'deleted'
EVENT_REFRESHED = 'refreshed'
EVENT_IGNORED = 'ignored'


class MissingAdminCodeError(Exception):
    """Raised when an admin operation is attempted without a stored admin code."""


class RoomManager:
    """Creates, joins, loads and deletes rooms on behalf of this machine.

    Every successful API call is followed by the matching store writes, and
    a room deleted on the server (explicitly or through a realtime
    ``group:deleted`` event) is purged from the store.
    """

    def __init__(self, store: RoomStore, client: GroupsClient) -> None:
        self._store = store
        self._client = client
        # Loads in flight per room, and rooms deleted while one was in flight.
        self._loading: Dict[str, int] = {}
        self._deleted_codes: Set[str] = set()

    # ------------------------------------------------------------------
    # Owner and guest entry points
    # ------------------------------------------------------------------

    def create_room(self, name: str, owner_name: str,
                    owner_email: Optional[str] = None) -> Dict[str, Any]:
        """Create a room with this machine as its owner."""
        payload = {'name': name.strip(), 'ownerName': owner_name.strip()}
        if owner_email:
            payload['ownerEmail'] = owner_email.strip()
        data = self._client.create_group(payload)

        join_code = normalize_code(data.get('joinCode'))
        host = data.get('hostParticipant') or {}
        with self._store.lock:
            self._store.remember_admin(join_code, data.get('adminCode'),
                                       name=data.get('name') or payload['name'])
            self._store.remember_participant_access(host.get('id'), host.get('accessCode'))
            self._store.add_participant(join_code, {
                'id': host.get('id'),
                'name': host.get('name') or payload['ownerName'],
                'isOwner': True,
            })
        logger.info("Created room %s", join_code)
        return data

    def join_room(self, join_code: str, name: str,
                  email: Optional[str] = None) -> Dict[str, Any]:
        """Join *join_code* as a new participant."""
        code = normalize_code(join_code)
        payload = {'name': name.strip()}
        if email:
            payload['email'] = email.strip()
        data = self._client.add_participant(code, payload)

        participant = data.get('participant') or {}
        with self._store.lock:
            self._store.remember_participant_access(participant.get('id'),
                                                    data.get('accessCode'))
            self._store.add_participant(code, participant)
        logger.info("Joined room %s as %s", code, participant.get('id'))
        return data

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    def load_room(self, join_code: str,
                  admin_code: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """Fetch the room as its administrator and refresh the cache.

        Uses *admin_code* when given, otherwise the stored one; returns
        ``None`` when neither exists.  A rejected admin code (HTTP 403) is
        forgotten and a missing room (HTTP 404) is purged before the error is
        re-raised.
        """
        code = normalize_code(join_code)
        admin = normalize_code(admin_code) or self._store.get_admin(code)
        if not code or not admin:
            return None
        with self._store.lock:
            self._loading[code] = self._loading.get(code, 0) + 1
        try:
            try:
                data = self._client.get_group(code, admin)
            except GroupsAPIError as exc:
                if exc.status_code == 403:
                    self._store.forget_admin(code)
                elif exc.status_code == 404:
                    self._store.forget_group(code)
                raise

            with self._store.lock:
                if code in self._deleted_codes:
                    logger.info("Room %s was deleted while loading; not caching it", code)
                    return None
                self._store.remember_admin(code, admin, name=data.get('name'))
                owner = self._find_owner(data)
                if owner is not None:
                    self._store.add_participant(code, {**owner, 'isOwner': True})
            return data
        finally:
            self._finish_load(code)

    def update_settings(self, join_code: str, settings: Dict[str, Any]) -> Dict[str, Any]:
        code, admin = self._require_admin(join_code)
        data = self._client.update_settings(code, admin, settings)
        self._store.touch_group(code, name=data.get('name'))
        return data

    def generate_assignments(self, join_code: str) -> Dict[str, Any]:
        code, admin = self._require_admin(join_code)
        return self._client.generate_assignments(code, admin)

    def delete_room(self, join_code: str) -> None:
        """Delete the room on the server, then forget it locally."""
        code, admin = self._require_admin(join_code)
        self._client.delete_group(code, admin)
        self._store.forget_group(code)
        logger.info("Deleted room %s", code)

    # ------------------------------------------------------------------
    # Realtime
    # ------------------------------------------------------------------

    def handle_group_event(self, join_code: str, message: Any) -> str:
        """React to an inbound ``group:event`` message for *join_code*.

        Returns ``"deleted"``, ``"refreshed"`` or ``"ignored"``.
        """
        event = message.get('event') if isinstance(message, dict) else None
        if not event:
            return EVENT_IGNORED
        code = normalize_code(join_code)
        if event == GROUP_DELETED:
            with self._store.lock:
                if code in self._loading:
                    self._deleted_codes.add(code)
                self._store.forget_group(code)
            logger.info("Room %s was deleted on the server", code)
            return EVENT_DELETED
        if not self._store.get_admin(code):
            return EVENT_IGNORED
        try:
            loaded = self.load_room(code)
        except GroupsAPIError as exc:
            logger.warning("Could not refresh room %s after %s: %s", code, event, exc)
            return EVENT_IGNORED
        return EVENT_REFRESHED if loaded is not None else EVENT_IGNORED

    @contextmanager
    def watch(self, gateway: RealtimeGateway, join_code: str,
              on_change: Optional[Callable[[str, Dict[str, Any]], None]] = None
              ) -> Iterator[GroupSubscription]:
        """Follow *join_code*'s realtime room for the duration of the block.

        *on_change* receives the outcome of :meth:`handle_group_event` and the
        raw message.
        """
        def _on_event(message: Dict[str, Any]) -> None:
            outcome = self.handle_group_event(join_code, message)
            if on_change is not None:
                on_change(outcome, message)

        with GroupSubscription(gateway, _on_event) as subscription:
            subscription.acquire(join_code)
            yield subscription

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_admin(self, join_code: str):
        code = normalize_code(join_code)
        admin = self._store.get_admin(code)
        if not admin:
            raise MissingAdminCodeError(f"No admin code saved for room {code or '?'}")
        return code, admin

    def _finish_load(self, code: str) -> None:
        with self._store.lock:
            remaining = self._loading.get(code, 0) - 1
            if remaining > 0:
                self._loading[code] = remaining
            else:
                self._loading.pop(code, None)
                self._deleted_codes.discard(code)

    @staticmethod
    def _find_owner(data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        owner_id = data.get('ownerParticipantId')
        if not owner_id:
            return None
        for participant in data.get('participants') or []:
            if isinstance(participant, dict) and participant.get('id') == owner_id:
                return participant
        return None
