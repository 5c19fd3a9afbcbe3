"""Process-wide store for the codes, memberships and profiles of saved rooms."""
import datetime
import logging
import os
import threading
from typing import Callable, Dict, List, Optional

from .codes import normalize_code
from .repositories import (
    AdminCodeRepository, ParticipantCodeRepository,
    GroupParticipantsRepository, GroupProfileRepository,
)
from .services import CredentialService, MembershipService, ProfileService, RoomQueryService

logger = logging.getLogger('santa.store')

ADMIN_CODES_FILE = 'admin-codes.json'
PARTICIPANT_CODES_FILE = 'participant-codes.json'
GROUP_PARTICIPANTS_FILE = 'group-participants.json'
GROUP_PROFILES_FILE = 'group-profiles.json'


class RoomStore:
    """The only entry point to the persisted room cache.

    Build one per process with the storage directory and share it.  The
    repositories and services are private; the public methods below are the
    complete set of operations, and every credential or membership write
    touches the room profile as part of the same call.

    Operations are serialised with a re-entrant lock because realtime events
    arrive on the Socket.IO client's background thread.
    """

    def __init__(self, storage_dir: str,
                 clock: Optional[Callable[[], datetime.datetime]] = None) -> None:
        self.storage_dir = os.path.expanduser(storage_dir)
        self.lock = threading.RLock()
        self._admin_repo = AdminCodeRepository(self._file(ADMIN_CODES_FILE))
        self._participant_repo = ParticipantCodeRepository(self._file(PARTICIPANT_CODES_FILE))
        self._membership_repo = GroupParticipantsRepository(self._file(GROUP_PARTICIPANTS_FILE))
        self._profile_repo = GroupProfileRepository(self._file(GROUP_PROFILES_FILE))

        self._profiles = ProfileService(self._profile_repo, clock=clock)
        self._credentials = CredentialService(self._admin_repo, self._participant_repo,
                                              self._profiles)
        self._memberships = MembershipService(self._membership_repo, self._profiles)
        self._queries = RoomQueryService(self._admin_repo, self._participant_repo,
                                         self._membership_repo, self._profile_repo)

    def _file(self, name: str) -> str:
        return os.path.join(self.storage_dir, name)

    # ------------------------------------------------------------------
    # Credentials
    # ------------------------------------------------------------------

    def remember_admin(self, join_code, admin_code, name: Optional[str] = None) -> None:
        with self.lock:
            self._credentials.remember_admin(join_code, admin_code, name=name)

    def get_admin(self, join_code) -> Optional[str]:
        with self.lock:
            return self._credentials.get_admin(join_code)

    def forget_admin(self, join_code) -> bool:
        """Drop only the admin code, e.g. after the server rejected it."""
        with self.lock:
            removed = self._credentials.forget_admin(join_code)
        if removed:
            logger.info("Forgot admin code for %s", normalize_code(join_code))
        return removed

    def remember_participant_access(self, participant_id, access_code) -> None:
        with self.lock:
            self._credentials.remember_participant_access(participant_id, access_code)

    def get_participant_access(self, participant_id) -> Optional[str]:
        with self.lock:
            return self._credentials.get_participant_access(participant_id)

    # ------------------------------------------------------------------
    # Memberships and profiles
    # ------------------------------------------------------------------

    def add_participant(self, join_code, participant) -> None:
        with self.lock:
            self._memberships.add_participant(join_code, participant)

    def get_participants(self, join_code) -> List[str]:
        with self.lock:
            return self._memberships.get_participants(join_code)

    def ensure_profile(self, join_code) -> Optional[Dict]:
        with self.lock:
            return self._profiles.ensure(join_code)

    def get_profile(self, join_code) -> Optional[Dict]:
        with self.lock:
            return self._profiles.get(join_code)

    def touch_group(self, join_code, name: Optional[str] = None) -> None:
        with self.lock:
            self._profiles.touch_group(join_code, name=name)

    def touch_participant(self, join_code, participant: Dict) -> None:
        with self.lock:
            self._profiles.touch_participant(join_code, participant)

    # ------------------------------------------------------------------
    # Cascade delete
    # ------------------------------------------------------------------

    def forget_group(self, join_code) -> None:
        """Remove everything remembered about *join_code*.

        Participant access codes of every identity in the room go first, then
        the admin code, the membership and the profile.  Safe to call for a
        room that is already gone.
        """
        code = normalize_code(join_code)
        if not code:
            return
        with self.lock:
            participant_ids = self._memberships.get_participants(code)
            if participant_ids:
                self._credentials.forget_participants(participant_ids)
            self._credentials.forget_admin(code)
            self._memberships.delete(code)
            self._profiles.delete(code)
        logger.info("Forgot room %s (%d participant identities)", code, len(participant_ids))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_administered_groups(self) -> List[Dict]:
        with self.lock:
            return self._queries.list_administered_groups()

    def list_participant_links(self) -> List[Dict]:
        with self.lock:
            return self._queries.list_participant_links()

    # ------------------------------------------------------------------
    # Cross-process changes
    # ------------------------------------------------------------------

    def reload(self) -> None:
        """Re-read every record from disk.

        Call this when another process sharing the storage directory signals
        a change; nothing is merged, the files win.
        """
        with self.lock:
            for repo in (self._admin_repo, self._participant_repo,
                         self._membership_repo, self._profile_repo):
                repo.reload()
        logger.debug("Reloaded room cache from %s", self.storage_dir)
