"""Helpers for the opaque codes and ids exchanged with the Groups API."""
from typing import Any, Optional


def normalize_code(code: Any) -> str:
    """Return *code* as an upper-case string (``''`` for ``None``).

    Join codes, admin codes and access codes are case-insensitive; they are
    stored and compared only in this form.
    """
    if code is None:
        return ''
    return str(code).strip().upper()


def extract_participant_id(participant: Any) -> Optional[str]:
    """Accept a bare participant id or a participant record with an ``id``."""
    if isinstance(participant, dict):
        participant_id = participant.get('id')
    else:
        participant_id = participant
    if participant_id is None or participant_id == '':
        return None
    return str(participant_id)
