"""Memory-capacity admission gate for opening windows."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from governance.audit_logger import AuditLogger
from governance.resource_ledger import ResourceLedger, owner_weight

logger = logging.getLogger("aurora.admission")

MB_PER_GB = 1024


def capacity_mb_from_gb(gb: float) -> float:
    return float(gb) * MB_PER_GB


@dataclass
class AdmissionDecision:
    """Represents allow/refuse decision for one open request."""

    allowed: bool
    reason: str
    app_name: str = ""
    projected_mb: float = 0.0
    total_mb: float = 0.0
    capacity_mb: float = 0.0


class AdmissionController:
    """Refuses opens that would push simulated memory past capacity."""

    def __init__(
        self,
        ledger: ResourceLedger,
        capacity_mb: float,
        audit_logger: AuditLogger | None = None,
    ) -> None:
        self.ledger = ledger
        self.capacity_mb = float(capacity_mb)
        self.audit_logger = audit_logger

    def projected_cost(
        self,
        app_type: str,
        owner: str,
        active_owner: str,
        current_descriptors: Sequence[Any],
    ) -> float:
        """Cost of one more window of ``app_type`` for ``owner``."""
        weight = owner_weight(owner, active_owner)
        already_open = any(getattr(item, "app_type", None) == app_type for item in current_descriptors)
        if already_open:
            return self.ledger.extra_window_cost(app_type, weight)
        return self.ledger.main_window_cost(app_type, weight)

    def can_open(
        self,
        app_type: str,
        owner: str,
        active_owner: str,
        current_descriptors: Sequence[Any],
        live_sessions: Mapping[str, Sequence[Any]] | None = None,
    ) -> AdmissionDecision:
        """Evaluate the capacity policy for an open request."""
        report = self.ledger.compute(active_owner, live_sessions=live_sessions)
        projected = self.projected_cost(app_type, owner, active_owner, current_descriptors)
        app_name = self.ledger.apps.display_name(app_type)
        needed = report.total_mb + projected

        if needed > self.capacity_mb:
            decision = AdmissionDecision(
                allowed=False,
                reason=(
                    f"Cannot open {app_name}: insufficient memory "
                    f"({needed:g}MB needed, {self.capacity_mb:g}MB available)."
                ),
                app_name=app_name,
                projected_mb=projected,
                total_mb=report.total_mb,
                capacity_mb=self.capacity_mb,
            )
            logger.info("Refused %s for %s: %s", app_type, owner, decision.reason)
        else:
            decision = AdmissionDecision(
                allowed=True,
                reason="Within memory capacity.",
                app_name=app_name,
                projected_mb=projected,
                total_mb=report.total_mb,
                capacity_mb=self.capacity_mb,
            )
        self._audit(app_type, owner, active_owner, decision)
        return decision

    def _audit(self, app_type: str, owner: str, active_owner: str, decision: AdmissionDecision) -> None:
        if self.audit_logger is None:
            return
        self.audit_logger.log(
            action="open_window",
            app_type=app_type,
            inputs={"owner": owner, "active_owner": active_owner},
            allowed=decision.allowed,
            reason=decision.reason,
            projected_mb=decision.projected_mb,
            total_mb=decision.total_mb,
            capacity_mb=decision.capacity_mb,
        )
