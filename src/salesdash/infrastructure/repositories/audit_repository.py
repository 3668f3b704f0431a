from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ...domain.audit import AuditEvent
from ..db import models


class SqlAlchemyAuditRepository:
    def __init__(self, db_session: AsyncSession):
        """Initialize audit repository with a database session.

        Args:
            db_session: SQLAlchemy async session instance
        """
        self.db_session = db_session

    async def log_event(self, actor_id: Optional[int], event: AuditEvent) -> None:
        """Persist one audit row and commit it.

        Called after the audited mutation has committed, so the row is its own
        unit of work. On failure the session is rolled back and the error
        propagates to ``log_audit_event``, which logs and swallows it.
        """
        record = event.to_record()
        audit = models.AuditModel(
            user_id=actor_id,
            action=record["action"],
            entity=record["entity"],
            entity_id=record["entity_id"],
            old_value=record["old_value"],
            new_value=record["new_value"],
            ip_address=record["ip_address"],
            user_agent=record["user_agent"],
            created_at=record["timestamp"] or datetime.now(timezone.utc),
        )
        self.db_session.add(audit)
        try:
            await self.db_session.commit()
        except Exception:
            await self.db_session.rollback()
            raise

    async def list_events(
        self, entity: Optional[str] = None, entity_id: Optional[int] = None, limit: int = 100
    ) -> List[Dict[str, Any]]:
        q = select(models.AuditModel).order_by(models.AuditModel.id.desc()).limit(limit)
        if entity is not None:
            q = q.where(models.AuditModel.entity == entity)
        if entity_id is not None:
            q = q.where(models.AuditModel.entity_id == entity_id)
        res = await self.db_session.execute(q)
        return [
            {
                "id": int(a.id),
                "user_id": a.user_id,
                "action": a.action,
                "entity": a.entity,
                "entity_id": a.entity_id,
                "old_value": a.old_value,
                "new_value": a.new_value,
                "ip_address": a.ip_address,
                "user_agent": a.user_agent,
                "created_at": a.created_at,
            }
            for a in res.scalars().all()
        ]
