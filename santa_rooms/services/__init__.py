"""Services package — expose all concrete services from one import."""
from .credential_service import CredentialService
from .membership_service import MembershipService
from .profile_service import ProfileService
from .room_query_service import RoomQueryService

__all__ = [
    'CredentialService',
    'MembershipService',
    'ProfileService',
    'RoomQueryService',
]
