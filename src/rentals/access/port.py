"""Access control port: resolves caller roles and permissions."""

from abc import ABC, abstractmethod
from enum import Enum


class Role(Enum):
    ADMIN = "admin"
    USER = "user"
    CUSTOMER = "customer"


class Action(Enum):
    OVERRIDE_DELIVERY_BLOCK = "override_delivery_block"


class AccessControl(ABC):
    """Abstract access control interface."""

    @abstractmethod
    def role_of(self, actor_id: str | None) -> Role | None:
        """Return the actor's role, or None for unknown actors."""
        ...

    @abstractmethod
    def authorize(self, actor_id: str | None, action: str, resource: str) -> bool:
        """Return True if ``actor_id`` may perform ``action`` on ``resource``."""
        ...
