"""Structured JSONL audit logger for admission decisions."""

from __future__ import annotations

import hashlib
import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any


class AuditLogger:
    """Writes admission audit records as JSON lines."""

    def __init__(self, log_path: Path) -> None:
        self.log_path = log_path
        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        self.logger = logging.getLogger("aurora.audit")

    @staticmethod
    def _hash_inputs(inputs: dict[str, Any]) -> str:
        payload = json.dumps(inputs, sort_keys=True, default=str).encode("utf-8")
        return hashlib.sha256(payload).hexdigest()

    def log(
        self,
        action: str,
        app_type: str,
        inputs: dict[str, Any],
        allowed: bool,
        reason: str = "",
        projected_mb: float = 0.0,
        total_mb: float = 0.0,
        capacity_mb: float = 0.0,
    ) -> None:
        """Append one JSONL audit event."""
        event = {
            "timestamp": datetime.now(UTC).isoformat(),
            "action": action,
            "app_type": app_type,
            "inputs_hash": self._hash_inputs(inputs),
            "allowed": allowed,
            "reason": reason,
            "projected_mb": projected_mb,
            "total_mb": total_mb,
            "capacity_mb": capacity_mb,
        }
        try:
            with self.log_path.open("a", encoding="utf-8") as fh:
                fh.write(json.dumps(event, ensure_ascii=True) + "\n")
        except OSError as exc:
            self.logger.warning("Failed to append audit event: %s", exc)
        self.logger.info(json.dumps(event, ensure_ascii=True))
