# ledger/authz.py
"""
Authorization utilities for the ledger.

Provides:
- ActorContext: Immutable context for the current request or job
- resolve_actor: Extract actor context from request
- require: Check permissions and raise if not granted

The actor also carries the database alias every command reads and writes
through, so storage is chosen once per request instead of per module.
"""

from dataclasses import dataclass
from typing import Optional

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.exceptions import PermissionDenied
from rest_framework.exceptions import NotAuthenticated


@dataclass(frozen=True)
class ActorContext:
    """
    Immutable context for the current actor.

    Attributes:
        user: The authenticated user (None for an anonymous system job)
        using: Database alias for all ledger reads and writes
        is_system: True for background jobs and management commands
    """
    user: Optional[object]
    using: str = "default"
    is_system: bool = False

    @classmethod
    def system(cls, using: str = "default") -> "ActorContext":
        """
        Actor for Celery tasks and management commands.

        Postings are attributed to the LEDGER_SYSTEM_USERNAME user when
        that user exists.
        """
        User = get_user_model()
        username = getattr(settings, "LEDGER_SYSTEM_USERNAME", "system")
        user = User.objects.db_manager(using).filter(username=username).first()
        return cls(user=user, using=using, is_system=True)

    @property
    def user_id(self):
        return getattr(self.user, "pk", None)

    def has(self, perm: str) -> bool:
        """
        Check if actor has a Django permission ("ledger.post_journalentry").

        System actors and superusers are implicitly allowed.
        """
        if self.is_system:
            return True
        if self.user is None or not self.user.is_active:
            return False
        return self.user.has_perm(perm)


def resolve_actor(request, using: str = "default") -> ActorContext:
    """
    Extract ActorContext from the current request.

    Raises:
        NotAuthenticated: If user is not authenticated
    """
    user = getattr(request, "user", None)

    if not user or not user.is_authenticated:
        raise NotAuthenticated("Authentication required.")

    return ActorContext(user=user, using=using)


def require(actor: ActorContext, perm: str) -> None:
    """
    Require that the actor has a specific permission.

    Raises PermissionDenied if the permission is not granted.
    """
    if not actor.has(perm):
        raise PermissionDenied(f"Permission denied: {perm}")
