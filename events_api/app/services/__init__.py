"""
Service layer abstraction.

Each service encapsulates the storage access for a domain.  Services
receive the shared ``Database`` (and, for users, the credential
manager) through their constructor; they return ``None`` or empty
results for "not found" and only raise on store failures.
"""

from dataclasses import dataclass

from ..core.config import Settings
from ..core.db import Database
from ..core.security import CredentialManager
from .event_service import EventService
from .registration_service import RegistrationService
from .user_service import UserService


@dataclass
class Services:
    """Everything a request handler may need, built once at startup."""

    settings: Settings
    db: Database
    credentials: CredentialManager
    users: UserService
    events: EventService
    registrations: RegistrationService

    @classmethod
    def build(cls, settings: Settings) -> "Services":
        db = Database(settings)
        credentials = CredentialManager(settings)
        return cls(
            settings=settings,
            db=db,
            credentials=credentials,
            users=UserService(db, credentials),
            events=EventService(db),
            registrations=RegistrationService(db),
        )
