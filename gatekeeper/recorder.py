"""Visit history and per-day statistics"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from gatekeeper.models import Statistic, Visit
from gatekeeper.resolver import RequestContext

logger = logging.getLogger(__name__)


@dataclass
class StatisticSnapshot:
    """Counters for one (date, address) row right after an update"""
    visits: int = 0
    visits_drops: int = 0
    requests: int = 0

    @property
    def visits_all(self) -> int:
        return self.visits + self.visits_drops

    def as_response_fields(self) -> Dict[str, int]:
        return {
            "requests": self.requests,
            "visits": self.visits,
            "visits_drops": self.visits_drops,
            "visits_all": self.visits_all,
        }


class VisitRecorder:
    """Write the visit log and bump the daily counters.

    Each operation commits on its own and fails on its own: an error is
    logged, appended to ``errors`` and the session rolled back, so a failed
    visit insert never stops the statistics update.
    """

    def __init__(
        self,
        db: Session,
        today: Callable[[], date] = date.today,
        now: Callable[[], datetime] = datetime.now
    ):
        self.db = db
        self.today = today
        self.now = now
        self.errors: List[str] = []

    def _fail(self, action: str, e: Exception):
        logger.warning(f"Failed to {action}: {e}")
        self.errors.append(f"Failed to {action}: {e}")
        try:
            self.db.rollback()
        except Exception as rollback_error:
            logger.warning(f"Rollback failed: {rollback_error}")

    def record_visit(self, address: Optional[str], blocked: bool, context: RequestContext) -> Optional[Visit]:
        """Append one visit row"""
        try:
            visit = Visit(
                ip=address,
                is_blocked=bool(blocked),
                page=context.path,
                method=context.method,
                referer=context.referer,
                user_agent=context.user_agent,
                request_data=context.request_data(),
                created_at=self.now(),
            )
            self.db.add(visit)
            self.db.commit()
            return visit
        except Exception as e:
            self._fail("record visit", e)
            return None

    def _increment(self, day: date, address: str, hostname: Optional[str], blocked: bool) -> int:
        counter = Statistic.visits_drops if blocked else Statistic.visits
        return self.db.query(Statistic).filter(
            Statistic.date == day,
            Statistic.ip == address
        ).update(
            {counter: counter + 1, Statistic.hostname: hostname},
            synchronize_session=False
        )

    def _snapshot(self, day: date, address: str) -> StatisticSnapshot:
        row = self.db.query(
            Statistic.visits, Statistic.visits_drops, Statistic.requests
        ).filter(
            Statistic.date == day,
            Statistic.ip == address
        ).one()

        return StatisticSnapshot(
            visits=row.visits or 0,
            visits_drops=row.visits_drops or 0,
            requests=row.requests or 0,
        )

    def record_statistic(
        self,
        address: str,
        hostname: Optional[str],
        blocked: bool,
        day: Optional[date] = None
    ) -> Optional[StatisticSnapshot]:
        """
        Count a visit (or a dropped visit) for the address on the given day.

        The increment runs in the database (``visits = visits + 1``) so
        concurrent visits cannot overwrite each other. The first visit of the
        day inserts the row; if a concurrent request inserted it first, the
        unique (date, ip) constraint rejects ours and the increment is retried.
        Counters are read inside the same transaction, before the commit.

        Returns:
            Counters after the update, or None if the update failed
        """
        day = day or self.today()

        try:
            if self._increment(day, address, hostname, blocked) == 0:
                self.db.add(Statistic(
                    date=day,
                    ip=address,
                    hostname=hostname,
                    visits=0 if blocked else 1,
                    visits_drops=1 if blocked else 0,
                    requests=0,
                ))
                try:
                    self.db.flush()
                except IntegrityError:
                    self.db.rollback()
                    logger.debug(f"Statistic row for {address} on {day} created concurrently, retrying increment")
                    self._increment(day, address, hostname, blocked)

            snapshot = self._snapshot(day, address)
            self.db.commit()
            return snapshot
        except Exception as e:
            self._fail("update statistics", e)
            return None
