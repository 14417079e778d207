from lp_vault.access.authorizer import (
    DEFAULT_ADMIN_ROLE,
    MANAGER_ROLE,
    AllowListAuthorizer,
    Authorizer,
    RoleAuthorizer,
    RoleRegistry,
    role_id,
)

__all__ = [
    "DEFAULT_ADMIN_ROLE",
    "MANAGER_ROLE",
    "AllowListAuthorizer",
    "Authorizer",
    "RoleAuthorizer",
    "RoleRegistry",
    "role_id",
]
