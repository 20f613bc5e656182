"""Gate controller: resolve, decide, record, respond"""

import logging
from datetime import date
from typing import Callable, List, Optional

from sqlalchemy.orm import Session

from gatekeeper.block_store import BlockStore
from gatekeeper.config import Config, get_config
from gatekeeper.decision import BlockDecisionEngine, Verdict
from gatekeeper.exceptions import AddressResolutionError
from gatekeeper.recorder import VisitRecorder
from gatekeeper.resolver import AddressResolver, RequestContext
from gatekeeper.schemas import CheckResponse
from gatekeeper.utils.network_utils import reverse_hostname

logger = logging.getLogger(__name__)


class GateController:
    """Run one gate check for one request.

    A controller is built per request; nothing is shared between checks.
    """

    def __init__(
        self,
        db: Session,
        context: RequestContext,
        config: Optional[Config] = None,
        hostname_lookup: Optional[Callable[[Optional[str]], Optional[str]]] = None,
        today: Callable[[], date] = date.today,
    ):
        self.db = db
        self.context = context
        self.config = config or get_config()
        self.hostname_lookup = hostname_lookup or reverse_hostname
        self.today = today

    def _resolve(self, errors: List[str]):
        resolver = AddressResolver(self.context, self.config.gate.address_headers)
        address = resolver.resolve()
        if address is None:
            error = AddressResolutionError("Client address could not be determined")
            logger.warning(str(error))
            errors.append(str(error))
            return None, None

        hostname = None
        if self.config.gate.reverse_dns:
            hostname = self.hostname_lookup(address)
        return address, hostname

    def _evaluate(self, address: Optional[str], hostname: Optional[str], day: date, errors: List[str]) -> Verdict:
        engine = BlockDecisionEngine(BlockStore(self.db), today=lambda: day)
        verdict = engine.evaluate(address, hostname, day)
        errors.extend(engine.errors)
        return verdict

    def evaluate_only(self) -> CheckResponse:
        """Run the decision chain without writing a visit or statistics"""
        errors: List[str] = []
        address, hostname = self._resolve(errors)
        verdict = self._evaluate(address, hostname, self.today(), errors)

        return CheckResponse(ip=address, errors=errors or None, **verdict.as_response_fields())

    def check(self) -> CheckResponse:
        """Full check: decide, log the visit, count it, and build the response"""
        errors: List[str] = []
        day = self.today()

        address, hostname = self._resolve(errors)
        verdict = self._evaluate(address, hostname, day, errors)

        recorder = VisitRecorder(self.db, today=lambda: day)
        if self.config.gate.record_visits:
            recorder.record_visit(address, verdict.is_blocked, self.context)

        counters = {}
        if address is not None:
            snapshot = recorder.record_statistic(address, hostname, verdict.is_blocked, day)
            if snapshot is not None:
                counters = snapshot.as_response_fields()
        errors.extend(recorder.errors)

        if verdict.is_blocked:
            logger.info(f"Blocked visit from {address} ({hostname or 'no hostname'})")

        return CheckResponse(
            ip=address,
            errors=errors or None,
            **verdict.as_response_fields(),
            **counters,
        )
