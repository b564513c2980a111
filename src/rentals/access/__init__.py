"""Access control adapter registry.

The default adapter is a role table built from the RENTALS_ADMIN_IDS and
RENTALS_USER_IDS environment variables (comma separated actor ids).
"""

import os

from rentals.access.port import AccessControl

_access_instance: AccessControl | None = None


def _ids_from_env(name: str) -> list[str]:
    return [value.strip() for value in os.environ.get(name, "").split(",") if value.strip()]


def get_access_control() -> AccessControl:
    """Return the configured access control adapter (singleton)."""
    global _access_instance
    if _access_instance is None:
        from rentals.access.role_adapter import RoleTableAccessControl

        _access_instance = RoleTableAccessControl.from_ids(
            admin_ids=_ids_from_env("RENTALS_ADMIN_IDS"),
            user_ids=_ids_from_env("RENTALS_USER_IDS"),
        )
    return _access_instance


def set_access_control(access_control: AccessControl) -> None:
    """Override the active adapter (useful for tests)."""
    global _access_instance
    _access_instance = access_control


def reset_access_control() -> None:
    """Reset the access control singleton (useful for testing)."""
    global _access_instance
    _access_instance = None
