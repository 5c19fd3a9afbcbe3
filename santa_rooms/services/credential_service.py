"""Business logic for the admin and participant credentials."""
from typing import Iterable, Optional

from ..codes import normalize_code
from ..repositories.code_repository import AdminCodeRepository, ParticipantCodeRepository
from .profile_service import ProfileService


class CredentialService:
    """Remembers which secret codes this machine holds.

    Admin codes are keyed by join code, access codes by participant id.
    Remembering an admin code also touches the room profile so the room
    surfaces at the top of the saved-rooms list.
    """

    def __init__(self, admin_repository: AdminCodeRepository,
                 participant_repository: ParticipantCodeRepository,
                 profiles: ProfileService) -> None:
        self._admin = admin_repository
        self._participants = participant_repository
        self._profiles = profiles

    # ------------------------------------------------------------------
    # Admin codes
    # ------------------------------------------------------------------

    def remember_admin(self, join_code, admin_code, name: Optional[str] = None) -> None:
        """Store *admin_code* for *join_code*, replacing any previous one."""
        code = normalize_code(join_code)
        admin = normalize_code(admin_code)
        if not code or not admin:
            return
        self._admin.upsert(code, admin)
        self._profiles.touch_group(code, name=name)

    def get_admin(self, join_code) -> Optional[str]:
        code = normalize_code(join_code)
        if not code:
            return None
        return self._admin.find(code)

    def forget_admin(self, join_code) -> bool:
        """Drop the admin code for *join_code*.  Returns ``True`` if one existed."""
        code = normalize_code(join_code)
        if not code:
            return False
        return self._admin.delete(code)

    # ------------------------------------------------------------------
    # Participant access codes
    # ------------------------------------------------------------------

    def remember_participant_access(self, participant_id, access_code) -> None:
        """Store *access_code* for *participant_id*, replacing any previous one."""
        access = normalize_code(access_code)
        if not participant_id or not access:
            return
        self._participants.upsert(str(participant_id), access)

    def get_participant_access(self, participant_id) -> Optional[str]:
        if not participant_id:
            return None
        return self._participants.find(str(participant_id))

    def forget_participants(self, participant_ids: Iterable[str]) -> int:
        return self._participants.delete_many([str(pid) for pid in participant_ids])
