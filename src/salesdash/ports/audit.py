from typing import Optional, Protocol

from ..domain.audit import AuditEvent


class AuditRepository(Protocol):
    async def log_event(self, actor_id: Optional[int], event: AuditEvent) -> None: ...
