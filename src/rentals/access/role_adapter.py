"""Role-table access control.

Actors are mapped to roles from configuration; each action lists the roles
allowed to perform it. Unknown actors get no role and no permissions.
"""

from rentals.access.port import AccessControl, Action, Role

ACTION_ROLES: dict[str, frozenset] = {
    Action.OVERRIDE_DELIVERY_BLOCK.value: frozenset({Role.ADMIN}),
}


class RoleTableAccessControl(AccessControl):
    def __init__(self, roles: dict[str, Role] | None = None) -> None:
        self.roles: dict[str, Role] = dict(roles or {})

    @classmethod
    def from_ids(cls, admin_ids=(), user_ids=()) -> "RoleTableAccessControl":
        roles = {actor_id: Role.USER for actor_id in user_ids}
        roles.update({actor_id: Role.ADMIN for actor_id in admin_ids})
        return cls(roles)

    def grant(self, actor_id: str, role: Role) -> None:
        self.roles[actor_id] = role

    def role_of(self, actor_id: str | None) -> Role | None:
        if not actor_id:
            return None
        return self.roles.get(actor_id)

    def authorize(self, actor_id: str | None, action: str, resource: str) -> bool:  # noqa: ARG002
        role = self.role_of(actor_id)
        return role is not None and role in ACTION_ROLES.get(action, frozenset())
