from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    super_admin = "super_admin"
    admin = "admin"
    editor = "editor"
    analyst = "analyst"


class Permission(str, Enum):
    manage_users = "manage_users"
    manage_settings = "manage_settings"
    manage_platforms = "manage_platforms"
    manage_rankings = "manage_rankings"
    delete_content = "delete_content"
    manage_institutions = "manage_institutions"
    manage_metrics = "manage_metrics"
    manage_blog = "manage_blog"
    view_analytics = "view_analytics"
    export_data = "export_data"


_EDITOR_PERMISSIONS = frozenset(
    {
        Permission.manage_institutions,
        Permission.manage_metrics,
        Permission.manage_blog,
        Permission.view_analytics,
    }
)

_ADMIN_PERMISSIONS = _EDITOR_PERMISSIONS | {
    Permission.manage_settings,
    Permission.manage_platforms,
    Permission.manage_rankings,
    Permission.delete_content,
    Permission.export_data,
}

ROLE_PERMISSIONS: dict[Role, frozenset[Permission]] = {
    Role.super_admin: frozenset(Permission),
    Role.admin: frozenset(_ADMIN_PERMISSIONS),
    Role.editor: _EDITOR_PERMISSIONS,
    Role.analyst: frozenset({Permission.view_analytics, Permission.export_data}),
}


def permissions_for(role: Role) -> frozenset[Permission]:
    return ROLE_PERMISSIONS.get(role, frozenset())


def has_permission(role: Role, permission: Permission) -> bool:
    return permission in permissions_for(role)
