"""Repository package — expose all concrete repositories from one import."""
from .code_repository import AdminCodeRepository, ParticipantCodeRepository
from .group_participants_repository import GroupParticipantsRepository
from .group_profiles_repository import GroupProfileRepository

__all__ = [
    'AdminCodeRepository',
    'ParticipantCodeRepository',
    'GroupParticipantsRepository',
    'GroupProfileRepository',
]
