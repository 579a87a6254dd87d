"""
Database-backed AttendanceStore for the Reobote lead agent.

Implements the AttendanceStore protocol using the repository layer.
"""

import logging
from typing import List

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from database.models import Attendance
from database.repositories import AttendanceRepository
from lead_scoring.models import CreditType, LeadData, Turn
from lead_scoring.scoring_model import Classification, LeadPriority

from .attendance_store import AttendanceRecord

logger = logging.getLogger(__name__)


class DbAttendanceStore:
    """Persistent attendance store backed by SQLAlchemy."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def append(self, record: AttendanceRecord) -> None:
        """Save an attendance to the database."""
        async with self._session_factory() as session:
            repo = AttendanceRepository(session)
            await repo.create(
                id=record.id,
                lead_name=record.lead.name,
                email=record.lead.email,
                phone=record.lead.phone,
                credit_type=record.lead.credit_type.value,
                lead_message=record.lead.message,
                messages_json=[t.to_dict() for t in record.turns],
                score=record.classification.score,
                priority=record.classification.priority.value,
                has_interest=record.has_interest,
                whatsapp_link=record.whatsapp_link,
                status=record.status,
                created_at=record.created_at,
            )
            await session.commit()
        logger.debug(f"Attendance saved: {record.id}")

    async def list(self) -> List[AttendanceRecord]:
        """Get attendances, most recent first."""
        async with self._session_factory() as session:
            rows = await AttendanceRepository(session).list_recent()
        return [_to_record(row) for row in rows]


def _to_record(row: Attendance) -> AttendanceRecord:
    return AttendanceRecord(
        id=row.id,
        lead=LeadData(
            name=row.lead_name,
            email=row.email,
            phone=row.phone,
            credit_type=CreditType(row.credit_type),
            message=row.lead_message,
        ),
        turns=[Turn.from_dict(m) for m in row.messages_json or []],
        classification=Classification(
            score=row.score,
            priority=LeadPriority(row.priority),
        ),
        has_interest=row.has_interest,
        whatsapp_link=row.whatsapp_link,
        status=row.status,
        created_at=row.created_at,
    )
