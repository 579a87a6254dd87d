"""
Repository classes for the Reobote lead agent data access layer.
"""

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Attendance

logger = logging.getLogger(__name__)


class AttendanceRepository:
    """Data access for attendances."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, **kwargs) -> Attendance:
        attendance = Attendance(**kwargs)
        self.session.add(attendance)
        await self.session.flush()
        return attendance

    async def list_recent(self, limit: Optional[int] = None) -> List[Attendance]:
        q = select(Attendance).order_by(Attendance.created_at.desc(), Attendance.pk.desc())
        if limit:
            q = q.limit(limit)
        result = await self.session.execute(q)
        return list(result.scalars().all())

