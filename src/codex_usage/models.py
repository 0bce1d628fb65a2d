from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class MalformedPayloadError(ValueError):
    pass


class PlanKind(str, Enum):
    GUEST = "guest"
    FREE = "free"
    GO = "go"
    PLUS = "plus"
    PRO = "pro"
    FREE_WORKSPACE = "free_workspace"
    TEAM = "team"
    BUSINESS = "business"
    EDUCATION = "education"
    QUORUM = "quorum"
    K12 = "k12"
    ENTERPRISE = "enterprise"
    EDU = "edu"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Plan:
    kind: PlanKind
    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class WindowSnapshot:
    used_percent: int
    reset_at: int
    limit_window_seconds: int = 0
    reset_after_seconds: int | None = None


@dataclass(frozen=True)
class RateLimitDetails:
    primary_window: WindowSnapshot | None = None
    secondary_window: WindowSnapshot | None = None
    allowed: bool | None = None
    limit_reached: bool | None = None


@dataclass(frozen=True)
class CreditDetails:
    has_credits: bool | None = None
    unlimited: bool | None = None
    balance: float | None = None


@dataclass(frozen=True)
class UsageResponse:
    plan: Plan | None = None
    rate_limit: RateLimitDetails | None = None
    credits: CreditDetails | None = None


def parse_timestamp(value: str | int | float | None) -> datetime | None:
    if value is None or value == "" or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        seconds = float(value)
        if seconds > 1_000_000_000_000:
            seconds = seconds / 1000.0
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    normalized = str(value).strip().replace("Z", "+00:00")
    try:
        parsed = datetime.fromisoformat(normalized)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_usage_response(payload: Any) -> UsageResponse:
    if not isinstance(payload, dict):
        raise MalformedPayloadError("Usage response is not a JSON object")
    return UsageResponse(
        plan=parse_plan(payload.get("plan_type")),
        rate_limit=_parse_rate_limit(payload.get("rate_limit")),
        credits=_parse_credits(payload.get("credits")),
    )


def parse_plan(value: Any) -> Plan | None:
    if value is None or isinstance(value, bool):
        return None
    name = str(value).strip()
    if not name:
        return None
    try:
        kind = PlanKind(name)
    except ValueError:
        kind = PlanKind.UNKNOWN
    if kind is PlanKind.UNKNOWN:
        return Plan(kind=PlanKind.UNKNOWN, name=name)
    return Plan(kind=kind, name=kind.value)


def _parse_rate_limit(payload: Any) -> RateLimitDetails | None:
    if not isinstance(payload, dict):
        return None
    return RateLimitDetails(
        primary_window=_parse_window(payload.get("primary_window"), "primary_window"),
        secondary_window=_parse_window(
            payload.get("secondary_window"), "secondary_window"
        ),
        allowed=_coerce_bool(payload.get("allowed")),
        limit_reached=_coerce_bool(payload.get("limit_reached")),
    )


def _parse_window(payload: Any, name: str) -> WindowSnapshot | None:
    if not isinstance(payload, dict):
        return None
    reset_at = parse_timestamp(payload.get("reset_at"))
    if reset_at is None:
        raise MalformedPayloadError(f"{name} is missing reset_at")
    used_percent = _coerce_number(payload.get("used_percent"))
    window_seconds = _coerce_number(payload.get("limit_window_seconds"))
    reset_after = _coerce_number(payload.get("reset_after_seconds"))
    return WindowSnapshot(
        used_percent=int(round(used_percent)) if used_percent is not None else 0,
        reset_at=int(reset_at.timestamp()),
        limit_window_seconds=int(window_seconds) if window_seconds else 0,
        reset_after_seconds=int(reset_after) if reset_after is not None else None,
    )


def _parse_credits(payload: Any) -> CreditDetails | None:
    if not isinstance(payload, dict):
        return None
    return CreditDetails(
        has_credits=_coerce_bool(payload.get("has_credits")),
        unlimited=_coerce_bool(payload.get("unlimited")),
        balance=_coerce_number(payload.get("balance")),
    )


def _coerce_number(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def _coerce_bool(value: Any) -> bool | None:
    if isinstance(value, bool):
        return value
    return None
