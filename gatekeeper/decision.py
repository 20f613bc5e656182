"""Block decision chain for inbound visits"""

import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Callable, Dict, List, Optional

from gatekeeper.block_store import BlockStore
from gatekeeper.utils.network_utils import ip_to_long

logger = logging.getLogger(__name__)

# drop_block value the classifier writes to let an address through
ALLOW_CODE = 1


class CheckResult(Enum):
    """Outcome of a single block check"""
    BLOCKED = "blocked"
    ALLOWED = "allowed"
    UNKNOWN = "unknown"  # The check's query failed

    def as_flag(self) -> Optional[bool]:
        """Wire representation: True, False, or None for unknown"""
        if self is CheckResult.BLOCKED:
            return True
        if self is CheckResult.ALLOWED:
            return False
        return None


def _flag(result: Optional[CheckResult]) -> Optional[bool]:
    return result.as_flag() if result is not None else None


@dataclass
class Verdict:
    """Result of the decision chain.

    A dimension left as None was never evaluated because an earlier
    check already blocked the address.
    """
    exact: Optional[CheckResult] = None
    auto: Optional[CheckResult] = None
    period: Optional[CheckResult] = None
    host: Optional[CheckResult] = None
    address: CheckResult = CheckResult.ALLOWED
    blocked: CheckResult = CheckResult.ALLOWED

    @property
    def is_blocked(self) -> bool:
        return self.blocked is CheckResult.BLOCKED

    def as_response_fields(self) -> Dict[str, Optional[bool]]:
        return {
            "block": self.blocked.as_flag(),
            "block_auto": _flag(self.auto),
            "block_host": _flag(self.host),
            "block_period": _flag(self.period),
            "block_ip": _flag(self.exact),
        }


class BlockDecisionEngine:
    """Run the ordered block checks for one address.

    Address checks run exact -> automatic -> period and stop at the first
    block. The hostname check runs only when none of them blocked. Storage
    failures never raise: the check becomes UNKNOWN and the message is
    collected in ``errors``.
    """

    def __init__(self, store: BlockStore, today: Callable[[], date] = date.today):
        self.store = store
        self.today = today
        self.errors: List[str] = []

    def _run(self, name: str, check: Callable[[], CheckResult]) -> CheckResult:
        try:
            return check()
        except Exception as e:
            logger.warning(f"{name} check failed: {e}")
            self.errors.append(f"{name} check failed: {e}")
            self.store.recover()
            return CheckResult.UNKNOWN

    def check_exact(self, address: Optional[str]) -> CheckResult:
        """Block by literal address match"""
        def query():
            if not address:
                return CheckResult.ALLOWED
            return CheckResult.BLOCKED if self.store.count_exact(address) > 0 else CheckResult.ALLOWED

        return self._run("exact block", query)

    def check_auto(self, address: Optional[str], day: Optional[date] = None) -> CheckResult:
        """Block by today's automatic-block record.

        An explicit integer code blocks unless it equals ALLOW_CODE; a record
        without a code blocks; no record allows.
        """
        def query():
            if not address:
                return CheckResult.ALLOWED
            row = self.store.find_automatic_block(address, day or self.today())
            if row is None:
                return CheckResult.ALLOWED
            if isinstance(row.drop_block, int) and not isinstance(row.drop_block, bool):
                return CheckResult.ALLOWED if row.drop_block == ALLOW_CODE else CheckResult.BLOCKED
            return CheckResult.BLOCKED

        return self._run("automatic block", query)

    def check_period(self, address: Optional[str]) -> CheckResult:
        """Block by IPv4 range rules. Non-IPv4 addresses never match."""
        numeric = ip_to_long(address)
        if numeric is None:
            return CheckResult.ALLOWED

        def query():
            return CheckResult.BLOCKED if self.store.count_period(numeric) > 0 else CheckResult.ALLOWED

        return self._run("period block", query)

    def check_host(self, address: Optional[str], hostname: Optional[str]) -> CheckResult:
        """Block by hostname rule: case-insensitive substring of the hostname,
        or exact equality with the address."""
        if not hostname:
            return CheckResult.ALLOWED

        def query():
            lowered = hostname.lower()
            for pattern in self.store.hostname_patterns():
                if not pattern:
                    continue
                if pattern.lower() in lowered or pattern == address:
                    return CheckResult.BLOCKED
            return CheckResult.ALLOWED

        return self._run("hostname block", query)

    def evaluate(self, address: Optional[str], hostname: Optional[str], day: Optional[date] = None) -> Verdict:
        """Evaluate every dimension and derive the overall verdict"""
        verdict = Verdict()

        address_checks = (
            ("exact", lambda: self.check_exact(address)),
            ("auto", lambda: self.check_auto(address, day)),
            ("period", lambda: self.check_period(address)),
        )

        results = []
        for attr, check in address_checks:
            result = check()
            setattr(verdict, attr, result)
            results.append(result)
            if result is CheckResult.BLOCKED:
                break

        if CheckResult.BLOCKED in results:
            verdict.address = CheckResult.BLOCKED
        elif CheckResult.UNKNOWN in results:
            verdict.address = CheckResult.UNKNOWN
        else:
            verdict.address = CheckResult.ALLOWED

        if verdict.address is CheckResult.BLOCKED:
            verdict.blocked = CheckResult.BLOCKED
            return verdict

        verdict.host = self.check_host(address, hostname)

        if verdict.host is not CheckResult.UNKNOWN:
            verdict.blocked = verdict.host
        else:
            verdict.blocked = verdict.address

        logger.debug(f"Verdict for {address} ({hostname}): {verdict.blocked.value}")
        return verdict
