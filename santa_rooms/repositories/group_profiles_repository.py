"""Repository for the display profile of each room."""
from typing import Dict, Optional, Tuple

from .base import BaseRepository


class GroupProfileRepository(BaseRepository):
    """Persists the denormalised room profiles to a JSON file.

    Schema::

        {
            "<JOIN_CODE>": {
                "name":               <str, optional>,
                "lastViewedAt":       <ISO-8601 str, optional>,
                "ownerParticipantId": <str, optional>,
                "participants": {
                    "<participant_id>": {"name": <str>, "lastViewedAt": <ISO-8601 str>}
                }
            }
        }
    """

    def __init__(self, file_path: str = 'group-profiles.json') -> None:
        super().__init__(file_path)

    def find(self, join_code: str) -> Optional[Dict]:
        """Return the profile for *join_code*, or ``None``."""
        profile = self.data.get(join_code)
        return profile if isinstance(profile, dict) else None

    def ensure(self, join_code: str) -> Dict:
        """Return the profile for *join_code*, creating an empty one if needed.

        The in-memory copy is updated; callers persist with :meth:`save`.
        """
        profile, _ = self.ensure_changed(join_code)
        return profile

    def ensure_changed(self, join_code: str) -> Tuple[Dict, bool]:
        """Like :meth:`ensure`, also reporting whether anything was created or repaired."""
        changed = False
        profile = self.find(join_code)
        if profile is None:
            profile = {'participants': {}}
            self.data[join_code] = profile
            changed = True
        if not isinstance(profile.get('participants'), dict):
            profile['participants'] = {}
            changed = True
        return profile, changed
