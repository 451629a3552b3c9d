"""Per-request context handed from routers to services."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Any, Optional

from timetrack.common.constants import UserRole


@dataclass(frozen=True)
class RequestContext:
    """Who is acting, for which tenant, and from where."""

    tenant_id: uuid.UUID
    user_id: Optional[uuid.UUID] = None
    role: UserRole = UserRole.system_admin
    employee_id: Optional[uuid.UUID] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None

    def audit_kwargs(self) -> dict[str, Any]:
        return {
            "tenant_id": self.tenant_id,
            "user_id": self.user_id,
            "ip_address": self.ip_address,
            "user_agent": self.user_agent,
        }

    @classmethod
    def system(cls, tenant_id: uuid.UUID) -> "RequestContext":
        """Context for scheduled jobs that run without a user."""
        return cls(tenant_id=tenant_id)
