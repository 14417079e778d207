"""Authorization seam for privileged vault operations.

The vault only asks ``is_allowed(caller, operation)``. ``RoleRegistry`` keeps
on-chain style role membership (role ids are keccak256 of the role name) and
``RoleAuthorizer`` maps each operation to the role it requires.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Protocol, runtime_checkable

from eth_utils import keccak, to_checksum_address
from loguru import logger

from lp_vault.core.constants.base import OP_DIVEST, OP_INVEST
from lp_vault.core.errors import UnauthorizedError

DEFAULT_ADMIN_ROLE = "0x" + "00" * 32


def role_id(name: str) -> str:
    return "0x" + keccak(text=name).hex().removeprefix("0x")


MANAGER_ROLE = role_id("MANAGER_ROLE")


@runtime_checkable
class Authorizer(Protocol):
    async def is_allowed(self, caller: str, operation: str) -> bool: ...


class RoleRegistry:
    def __init__(self, admin: str) -> None:
        self._members: dict[str, set[str]] = {
            DEFAULT_ADMIN_ROLE: {to_checksum_address(admin)}
        }
        self.logger = logger.bind(component="roles")

    def has_role(self, role: str, account: str) -> bool:
        return to_checksum_address(account) in self._members.get(role, set())

    def _require_admin(self, sender: str) -> None:
        if not self.has_role(DEFAULT_ADMIN_ROLE, sender):
            raise UnauthorizedError(sender, "grant_role")

    def grant_role(self, sender: str, role: str, account: str) -> None:
        self._require_admin(sender)
        self._members.setdefault(role, set()).add(to_checksum_address(account))
        self.logger.info(f"Granted {role} to {account}")

    def revoke_role(self, sender: str, role: str, account: str) -> None:
        self._require_admin(sender)
        self._members.get(role, set()).discard(to_checksum_address(account))
        self.logger.info(f"Revoked {role} from {account}")


class RoleAuthorizer:
    def __init__(
        self,
        registry: RoleRegistry,
        operation_roles: Mapping[str, str] | None = None,
    ) -> None:
        self.registry = registry
        self.operation_roles = dict(
            operation_roles or {OP_INVEST: MANAGER_ROLE, OP_DIVEST: MANAGER_ROLE}
        )

    async def is_allowed(self, caller: str, operation: str) -> bool:
        role = self.operation_roles.get(operation)
        if role is None:
            return False
        return self.registry.has_role(role, caller)


class AllowListAuthorizer:
    """Fixed set of callers allowed for every privileged operation."""

    def __init__(self, addresses: Iterable[str]) -> None:
        self.addresses = frozenset(to_checksum_address(a) for a in addresses)

    async def is_allowed(self, caller: str, operation: str) -> bool:
        return to_checksum_address(caller) in self.addresses
