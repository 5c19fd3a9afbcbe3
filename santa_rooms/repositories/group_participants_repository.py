"""Repository for the participants known per room ({join_code: [participant_id, ...]})."""
from typing import List

from .base import BaseRepository


class GroupParticipantsRepository(BaseRepository):
    """Persists which participant identities joined each room from here.

    Schema::

        {"<JOIN_CODE>": ["<participant_id>", ...]}

    Each list behaves as a set: adding an id twice keeps a single entry.
    """

    def __init__(self, file_path: str = 'group-participants.json') -> None:
        super().__init__(file_path)

    def find(self, join_code: str) -> List[str]:
        """Return the participant ids for *join_code* (``[]`` if none)."""
        ids = self.data.get(join_code)
        if not isinstance(ids, list):
            return []
        return [str(pid) for pid in ids if pid]

    def add(self, join_code: str, participant_id: str) -> bool:
        """Add *participant_id* to the room.  Returns ``True`` if it was new."""
        current = self.find(join_code)
        if participant_id in current:
            return False
        current.append(participant_id)
        self.data[join_code] = current
        self.save()
        return True

    def items(self):
        return [(code, self.find(code)) for code in self.data]
