"""Business logic for the participants known per room."""
from typing import List

from ..codes import extract_participant_id, normalize_code
from ..repositories.group_participants_repository import GroupParticipantsRepository
from .profile_service import ProfileService


class MembershipService:
    """Tracks which participant identities joined each room from this machine.

    The set per room only grows; entries go away with the whole room in
    :meth:`~santa_rooms.store.RoomStore.forget_group`.
    """

    def __init__(self, repository: GroupParticipantsRepository,
                 profiles: ProfileService) -> None:
        self._repo = repository
        self._profiles = profiles

    def add_participant(self, join_code, participant) -> None:
        """Record *participant* (an id or a ``{id, name?, isOwner?}`` record).

        The room profile is ensured before the membership is written, and a
        full record is forwarded to the profile cache.
        """
        code = normalize_code(join_code)
        participant_id = extract_participant_id(participant)
        if not code or not participant_id:
            return
        self._profiles.ensure(code)
        self._repo.add(code, participant_id)
        if isinstance(participant, dict):
            self._profiles.touch_participant(code, {**participant, 'id': participant_id})
        self._profiles.touch_group(code)

    def get_participants(self, join_code) -> List[str]:
        code = normalize_code(join_code)
        if not code:
            return []
        return self._repo.find(code)

    def delete(self, join_code) -> List[str]:
        """Remove the room's membership and return the ids it held."""
        code = normalize_code(join_code)
        if not code:
            return []
        participant_ids = self._repo.find(code)
        self._repo.delete(code)
        return participant_ids
