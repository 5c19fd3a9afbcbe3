"""Read-only views joining credentials, memberships and profiles."""
import datetime
from typing import Dict, List, Optional

from ..repositories.code_repository import AdminCodeRepository, ParticipantCodeRepository
from ..repositories.group_participants_repository import GroupParticipantsRepository
from ..repositories.group_profiles_repository import GroupProfileRepository
from .profile_service import DEFAULT_PARTICIPANT_NAME


def default_group_name(join_code: str) -> str:
    return f"Grupo {join_code}"


def recency_key(last_viewed_at: Optional[str]) -> float:
    """Return *last_viewed_at* as a POSIX timestamp (``0.0`` when unusable)."""
    if not last_viewed_at or not isinstance(last_viewed_at, str):
        return 0.0
    value = last_viewed_at.strip()
    if value.endswith('Z'):
        value = value[:-1] + '+00:00'
    try:
        parsed = datetime.datetime.fromisoformat(value)
    except ValueError:
        return 0.0
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=datetime.timezone.utc)
    return parsed.timestamp()


def sort_by_recency(entries: List[Dict]) -> List[Dict]:
    """Most recent first; equal timestamps keep their enumeration order."""
    return sorted(entries, key=lambda e: recency_key(e.get('last_viewed_at')), reverse=True)


class RoomQueryService:
    """Builds the two "saved rooms" lists shown to the user.

    Nothing here mutates state; every call reads the repositories' current
    in-memory data.
    """

    def __init__(self, admin_codes: AdminCodeRepository,
                 participant_codes: ParticipantCodeRepository,
                 memberships: GroupParticipantsRepository,
                 profiles: GroupProfileRepository) -> None:
        self._admin_codes = admin_codes
        self._participant_codes = participant_codes
        self._memberships = memberships
        self._profiles = profiles

    def _profile(self, join_code: str) -> Dict:
        return self._profiles.find(join_code) or {}

    @staticmethod
    def _participants_of(profile: Dict) -> Dict:
        participants = profile.get('participants')
        return participants if isinstance(participants, dict) else {}

    def list_administered_groups(self) -> List[Dict]:
        """Return the rooms this machine holds an admin code for.

        Each entry::

            {
                "join_code", "admin_code", "name", "last_viewed_at",
                "owner_participant_id", "owner_participant_name",
                "owner_access_code"
            }
        """
        entries: List[Dict] = []
        for join_code, admin_code in self._admin_codes.items():
            profile = self._profile(join_code)
            participants = self._participants_of(profile)
            owner_id = profile.get('ownerParticipantId')
            if not isinstance(owner_id, str) or not owner_id:
                owner_id = None
            owner_profile = participants.get(owner_id) if owner_id else None
            if not isinstance(owner_profile, dict):
                owner_profile = {}
            entries.append({
                'join_code': join_code,
                'admin_code': admin_code,
                'name': profile.get('name') or default_group_name(join_code),
                'last_viewed_at': profile.get('lastViewedAt') or None,
                'owner_participant_id': owner_id,
                'owner_participant_name': owner_profile.get('name') if owner_id else None,
                'owner_access_code': self._participant_codes.find(owner_id) if owner_id else None,
            })
        return sort_by_recency(entries)

    def list_participant_links(self) -> List[Dict]:
        """Return one entry per remembered participant that still has an access code.

        Each entry::

            {
                "join_code", "participant_id", "access_code",
                "group_name", "participant_name", "last_viewed_at"
            }
        """
        entries: List[Dict] = []
        for join_code, participant_ids in self._memberships.items():
            profile = self._profile(join_code)
            participants = self._participants_of(profile)
            for participant_id in participant_ids:
                access_code = self._participant_codes.find(participant_id)
                if not access_code:
                    continue
                participant_profile = participants.get(participant_id)
                if not isinstance(participant_profile, dict):
                    participant_profile = {}
                entries.append({
                    'join_code': join_code,
                    'participant_id': participant_id,
                    'access_code': access_code,
                    'group_name': profile.get('name') or default_group_name(join_code),
                    'participant_name': participant_profile.get('name') or DEFAULT_PARTICIPANT_NAME,
                    'last_viewed_at': (participant_profile.get('lastViewedAt')
                                       or profile.get('lastViewedAt') or None),
                })
        return sort_by_recency(entries)
