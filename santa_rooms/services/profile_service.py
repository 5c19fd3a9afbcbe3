"""Business logic for the room display profiles."""
import copy
import datetime
from typing import Callable, Dict, Optional

from ..codes import normalize_code
from ..repositories.group_profiles_repository import GroupProfileRepository

DEFAULT_PARTICIPANT_NAME = 'Participante'


def utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class ProfileService:
    """Maintains the per-room display cache, delegating persistence to
    :class:`~santa_rooms.repositories.group_profiles_repository.GroupProfileRepository`.

    ``lastViewedAt`` is refreshed on every touch and is only ever used to order
    the saved-rooms lists.
    """

    def __init__(self, repository: GroupProfileRepository,
                 clock: Optional[Callable[[], datetime.datetime]] = None) -> None:
        self._repo = repository
        self._clock = clock or utc_now

    def _now(self) -> str:
        return self._clock().isoformat()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get(self, join_code) -> Optional[Dict]:
        """Return a copy of the profile for *join_code*, or ``None``."""
        code = normalize_code(join_code)
        if not code:
            return None
        profile = self._repo.find(code)
        return copy.deepcopy(profile) if profile is not None else None

    def ensure(self, join_code) -> Optional[Dict]:
        """Return the profile for *join_code*, creating an empty one if absent.

        An existing name is never overwritten.
        """
        code = normalize_code(join_code)
        if not code:
            return None
        profile, changed = self._repo.ensure_changed(code)
        if changed:
            self._repo.save()
        return copy.deepcopy(profile)

    def touch_group(self, join_code, name: Optional[str] = None) -> None:
        """Refresh the room's recency and, when given, its name."""
        code = normalize_code(join_code)
        if not code:
            return
        profile = self._repo.ensure(code)
        if name:
            profile['name'] = name
        profile['lastViewedAt'] = self._now()
        self._repo.save()

    def touch_participant(self, join_code, participant: Dict) -> None:
        """Upsert *participant* (``{id, name?, isOwner?}``) in the room profile.

        A participant flagged ``isOwner`` becomes the room's owner; the last
        such write wins.
        """
        code = normalize_code(join_code)
        if not code or not isinstance(participant, dict) or not participant.get('id'):
            return
        participant_id = str(participant['id'])
        profile = self._repo.ensure(code)
        profile['participants'][participant_id] = {
            'name': participant.get('name') or DEFAULT_PARTICIPANT_NAME,
            'lastViewedAt': self._now(),
        }
        if participant.get('isOwner'):
            profile['ownerParticipantId'] = participant_id
        self._repo.save()

    def delete(self, join_code) -> bool:
        code = normalize_code(join_code)
        if not code:
            return False
        return self._repo.delete(code)
