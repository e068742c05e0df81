"""Health status vocabulary."""

from __future__ import annotations

from typing import Literal

HealthStatus = Literal["ok", "not ok", "degraded"]

STATUS_OK: HealthStatus = "ok"
STATUS_NOT_OK: HealthStatus = "not ok"
STATUS_DEGRADED: HealthStatus = "degraded"

ALLOWED_STATUSES: tuple[HealthStatus, ...] = (STATUS_OK, STATUS_NOT_OK, STATUS_DEGRADED)
