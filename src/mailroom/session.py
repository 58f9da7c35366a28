"""Explicit tenant handle passed to every organization-scoped call."""

from __future__ import annotations

from dataclasses import dataclass

ORGANIZATION_HEADER = "X-Organization-Id"


@dataclass(frozen=True)
class TenantSession:
    """Binds requests to one organization.

    There is no ambient "current tenant": a service can only touch a
    tenant's data through the session it is handed.
    """

    organization_id: str
    role: str | None = None

    def __post_init__(self) -> None:
        if not self.organization_id:
            raise ValueError("organization_id must be non-empty")

    @property
    def headers(self) -> dict[str, str]:
        return {ORGANIZATION_HEADER: self.organization_id}
