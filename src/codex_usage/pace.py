from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from codex_usage.models import WindowSnapshot

WEEKLY_WINDOW_MINUTES = 7 * 24 * 60
FIVE_HOUR_WINDOW_MINUTES = 5 * 60


class Stage(Enum):
    ON_TRACK = "on track"
    SLIGHTLY_AHEAD = "slightly ahead"
    AHEAD = "ahead"
    FAR_AHEAD = "far ahead"
    SLIGHTLY_BEHIND = "slightly behind"
    BEHIND = "behind"
    FAR_BEHIND = "far behind"


AHEAD_STAGES = frozenset({Stage.SLIGHTLY_AHEAD, Stage.AHEAD, Stage.FAR_AHEAD})
BEHIND_STAGES = frozenset({Stage.SLIGHTLY_BEHIND, Stage.BEHIND, Stage.FAR_BEHIND})

_STAGE_SYMBOLS = {
    Stage.ON_TRACK: "✓",
    Stage.SLIGHTLY_AHEAD: "↑",
    Stage.AHEAD: "↑↑",
    Stage.FAR_AHEAD: "↑↑↑",
    Stage.SLIGHTLY_BEHIND: "↓",
    Stage.BEHIND: "↓↓",
    Stage.FAR_BEHIND: "↓↓↓",
}


@dataclass(frozen=True)
class UsagePace:
    stage: Stage
    delta_percent: float
    expected_used_percent: float
    actual_used_percent: float
    eta_seconds: float | None
    will_last_to_reset: bool

    @property
    def symbol(self) -> str:
        return _STAGE_SYMBOLS[self.stage]

    @property
    def description(self) -> str:
        return self.stage.value


def project(
    window: WindowSnapshot,
    now: datetime,
    default_window_minutes: int,
) -> UsagePace | None:
    window_minutes = window.limit_window_seconds // 60
    if window_minutes <= 0:
        window_minutes = default_window_minutes

    duration_sec = float(window_minutes * 60)
    time_until_reset = float(max(0, int(window.reset_at - now.timestamp())))

    if time_until_reset > duration_sec or time_until_reset == 0:
        return None

    elapsed = _clamp(duration_sec - time_until_reset, 0.0, duration_sec)
    expected = _clamp(elapsed / duration_sec * 100.0, 0.0, 100.0)
    actual = _clamp(float(window.used_percent), 0.0, 100.0)

    if elapsed == 0 and actual > 0:
        return None

    delta = actual - expected
    eta_seconds: float | None = None
    will_last_to_reset = False
    if elapsed > 0 and actual > 0:
        rate = actual / elapsed
        if rate > 0:
            candidate = max(100.0 - actual, 0.0) / rate
            if candidate >= time_until_reset:
                will_last_to_reset = True
            else:
                eta_seconds = candidate
        else:
            will_last_to_reset = True
    elif elapsed > 0:
        will_last_to_reset = True

    return UsagePace(
        stage=stage_from_delta(delta),
        delta_percent=delta,
        expected_used_percent=expected,
        actual_used_percent=actual,
        eta_seconds=eta_seconds,
        will_last_to_reset=will_last_to_reset,
    )


def stage_from_delta(delta: float) -> Stage:
    magnitude = abs(delta)
    ahead = delta >= 0
    if magnitude <= 2.0:
        return Stage.ON_TRACK
    if magnitude <= 6.0:
        return Stage.SLIGHTLY_AHEAD if ahead else Stage.SLIGHTLY_BEHIND
    if magnitude <= 12.0:
        return Stage.AHEAD if ahead else Stage.BEHIND
    return Stage.FAR_AHEAD if ahead else Stage.FAR_BEHIND


def format_eta(pace: UsagePace) -> str:
    if pace.will_last_to_reset:
        return "until reset"
    if pace.eta_seconds is None:
        return "unknown"
    eta = int(pace.eta_seconds)
    if eta > 86400:
        return f"{eta // 86400}d {(eta % 86400) // 3600}h"
    if eta > 3600:
        return f"{eta // 3600}h {(eta % 3600) // 60}m"
    return f"{eta // 60}m"


def format_delta(pace: UsagePace) -> str:
    sign = "+" if pace.delta_percent >= 0 else ""
    return f"{sign}{pace.delta_percent:.1f}%"


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))
