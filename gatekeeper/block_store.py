"""Read-only queries over block rules and automatic-block records"""

import logging
from datetime import date
from typing import List, Optional

from sqlalchemy.orm import Session

from gatekeeper.models import Block, AutomaticBlock

logger = logging.getLogger(__name__)


class BlockStore:
    """Query interface consumed by the block decision engine"""

    def __init__(self, db: Session):
        self.db = db

    def count_exact(self, address: str) -> int:
        """Active rules whose host is exactly this address"""
        return self.db.query(Block).filter(
            Block.host == address,
            Block.is_block == True
        ).count()

    def find_automatic_block(self, address: str, day: date) -> Optional[AutomaticBlock]:
        """The classifier's record for this address on this day, if any"""
        return self.db.query(AutomaticBlock).filter(
            AutomaticBlock.ip == address,
            AutomaticBlock.date == day
        ).first()

    def count_period(self, numeric: int) -> int:
        """Active range rules whose inclusive bounds contain the numeric address"""
        return self.db.query(Block).filter(
            Block.is_period == True,
            Block.is_block == True,
            Block.period_start <= numeric,
            Block.period_stop >= numeric
        ).count()

    def hostname_patterns(self) -> List[str]:
        """Host values of every active hostname rule"""
        rows = self.db.query(Block.host).filter(
            Block.is_hostname == True,
            Block.is_block == True
        ).all()
        return [row.host for row in rows if row.host is not None]

    def recover(self):
        """Reset the session after a failed query so later checks can run"""
        try:
            self.db.rollback()
        except Exception as e:
            logger.warning(f"Rollback after failed block query also failed: {e}")
