"""Simulated memory accounting across every stored window session.

Costs, in MB:

- session base: 512 for the active owner, 128 for any other owner
- first window of an app: ``ram_usage * weight``
- each further window of the same app: ``ram_usage / 2 * weight``
- each sub-unit (tab) beyond the first: ``ram_usage / 4 * weight``

``weight`` is 1.0 for the active owner and 0.5 for everyone else.
"""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Literal

from storage.keys import app_state_key, owner_from_window_key, window_key
from storage.kv_store import PersistenceStore
from world_model.app_registry import AppRegistry

logger = logging.getLogger("aurora.ledger")

ACTIVE_SESSION_BASE_RAM = 512
INACTIVE_SESSION_BASE_RAM = 128
ACTIVE_WEIGHT = 1.0
INACTIVE_WEIGHT = 0.5

SessionType = Literal["Active", "Inactive"]


@dataclass
class OwnerUsage:
    """Memory usage of one owner's session."""

    owner: str
    session_type: SessionType
    session_ram: float
    apps_ram: float = 0.0
    total_owner_ram: float = 0.0
    details: list[str] = field(default_factory=list)


@dataclass
class ResourceReport:
    """Ledger result: rounded grand total plus per-owner breakdown."""

    total_mb: int = 0
    breakdown: list[OwnerUsage] = field(default_factory=list)

    def for_owner(self, owner: str) -> OwnerUsage | None:
        return next((item for item in self.breakdown if item.owner == owner), None)


def owner_weight(owner: str, active_owner: str) -> float:
    return ACTIVE_WEIGHT if owner == active_owner else INACTIVE_WEIGHT


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class ResourceLedger:
    """Computes a ``ResourceReport`` from the persistence store."""

    def __init__(self, store: PersistenceStore, apps: AppRegistry) -> None:
        self.store = store
        self.apps = apps

    def main_window_cost(self, app_type: str, weight: float) -> float:
        return self.apps.ram_usage(app_type) * weight

    def extra_window_cost(self, app_type: str, weight: float) -> float:
        return self.apps.ram_usage(app_type) / 2 * weight

    def session_owners(self, active_owner: str) -> list[str]:
        """Owners with a stored session, plus the active owner."""
        owners: list[str] = []
        for key in self.store.keys():
            owner = owner_from_window_key(key)
            if owner and owner not in owners:
                owners.append(owner)
        if active_owner not in owners:
            owners.append(active_owner)
        return owners

    def compute(
        self,
        active_owner: str,
        live_sessions: Mapping[str, Sequence[Any]] | None = None,
    ) -> ResourceReport:
        """Build the report.

        ``live_sessions`` maps owner to in-memory window records (anything with
        an ``app_type`` attribute or key) and takes precedence over what the
        store holds for that owner.
        """
        live_sessions = live_sessions or {}
        owners = self.session_owners(active_owner)
        for owner in live_sessions:
            if owner not in owners:
                owners.append(owner)

        report = ResourceReport()
        total = 0.0
        for owner in owners:
            is_active = owner == active_owner
            weight = owner_weight(owner, active_owner)
            usage = OwnerUsage(
                owner=owner,
                session_type="Active" if is_active else "Inactive",
                session_ram=ACTIVE_SESSION_BASE_RAM if is_active else INACTIVE_SESSION_BASE_RAM,
            )
            if owner in live_sessions:
                app_types = [_app_type_of(item) for item in live_sessions[owner]]
            else:
                app_types = self._stored_app_types(owner)
            self._charge_windows(usage, [t for t in app_types if t], weight)
            self._charge_sub_instances(usage, set(app_types), weight)

            usage.total_owner_ram = usage.session_ram + usage.apps_ram
            total += usage.total_owner_ram
            report.breakdown.append(usage)

        report.total_mb = _round_half_up(total)
        logger.debug("Ledger for %s: %d MB across %d sessions", active_owner, report.total_mb, len(owners))
        return report

    def _charge_windows(self, usage: OwnerUsage, app_types: list[str], weight: float) -> None:
        seen: set[str] = set()
        for app_type in app_types:
            app = self.apps.get(app_type)
            if not app or not app.ram_usage:
                continue
            if app_type not in seen:
                seen.add(app_type)
                cost = self.main_window_cost(app_type, weight)
                label = "Main Window"
            else:
                cost = self.extra_window_cost(app_type, weight)
                label = "Extra Window"
            usage.apps_ram += cost
            usage.details.append(f"[{app.name}] {label}: {cost:g}MB")

    def _charge_sub_instances(self, usage: OwnerUsage, open_apps: set[str], weight: float) -> None:
        for app in self.apps.all():
            if not app.sub_instance_field or app.id not in open_apps:
                continue
            count = self._sub_instance_count(app.id, app.sub_instance_field, usage.owner)
            if count <= 1:
                continue
            extra = count - 1
            cost = extra * (self.apps.ram_usage(app.id) / 4) * weight
            if cost > 0:
                usage.apps_ram += cost
                usage.details.append(f"[{app.name}] {extra} Extra Tabs: {cost:g}MB")

    def _sub_instance_count(self, app_id: str, field_name: str, owner: str) -> int:
        raw = self.store.get(app_state_key(app_id, owner))
        if not raw:
            return 0
        try:
            state = json.loads(raw)
        except ValueError:
            logger.debug("Ignoring malformed %s state for %s", app_id, owner)
            return 0
        units = state.get(field_name) if isinstance(state, dict) else None
        return len(units) if isinstance(units, list) else 0

    def _stored_app_types(self, owner: str) -> list[str]:
        raw = self.store.get(window_key(owner))
        if not raw:
            return []
        try:
            entries = json.loads(raw)
        except ValueError:
            logger.debug("Ignoring unparsable session for %s", owner)
            return []
        if not isinstance(entries, list):
            return []
        return [_app_type_of(entry) for entry in entries]


def _app_type_of(item: Any) -> str:
    if isinstance(item, dict):
        value = item.get("app_type")
    else:
        value = getattr(item, "app_type", None)
    return value if isinstance(value, str) else ""
