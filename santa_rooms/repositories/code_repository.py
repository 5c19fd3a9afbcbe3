"""Repositories for the secret codes ({key: code})."""
from typing import List, Optional, Tuple

from .base import BaseRepository


class CodeRepository(BaseRepository):
    """Persists a flat ``{key: code}`` mapping to a JSON file.

    Values that are not strings are treated as absent on lookup.
    """

    def find(self, key: str) -> Optional[str]:
        """Return the code stored under *key*, or ``None``."""
        value = self.data.get(key)
        if isinstance(value, str) and value:
            return value
        return None

    def upsert(self, key: str, code: str) -> None:
        """Insert or replace the code for *key*, then persist."""
        self.data[key] = code
        self.save()

    def delete_many(self, keys: List[str]) -> int:
        """Remove every key in *keys*; persists once.  Returns how many existed."""
        removed = 0
        for key in keys:
            if key in self.data:
                del self.data[key]
                removed += 1
        if removed:
            self.save()
        return removed

    def items(self) -> List[Tuple[str, str]]:
        return [(k, v) for k, v in self.data.items() if isinstance(v, str) and v]


class AdminCodeRepository(CodeRepository):
    """Admin codes per room.

    Schema::

        {"<JOIN_CODE>": "<ADMIN_CODE>"}
    """

    def __init__(self, file_path: str = 'admin-codes.json') -> None:
        super().__init__(file_path)


class ParticipantCodeRepository(CodeRepository):
    """Access codes per participant identity.

    Schema::

        {"<participant_id>": "<ACCESS_CODE>"}
    """

    def __init__(self, file_path: str = 'participant-codes.json') -> None:
        super().__init__(file_path)
