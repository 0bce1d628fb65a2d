from __future__ import annotations

from datetime import datetime

from rich.console import Console
from rich.text import Text

from codex_usage.layout import EMPTY_STYLE, NOMINAL, Layout, stage_style, visible_width
from codex_usage.models import CreditDetails, UsageResponse, WindowSnapshot
from codex_usage.pace import (
    FIVE_HOUR_WINDOW_MINUTES,
    WEEKLY_WINDOW_MINUTES,
    UsagePace,
    format_delta,
    format_eta,
    project,
)

DEFAULT_WIDTH = 74
TITLE_DECOR = "✦"
TITLE = " ".join([TITLE_DECOR] * 3 + ["CODEX USAGE MONITOR"] + [TITLE_DECOR] * 3)


def render_dashboard(
    console: Console,
    response: UsageResponse,
    now: datetime,
    width: int = DEFAULT_WIDTH,
) -> None:
    for line in build_dashboard(response, now, width):
        console.print(line, soft_wrap=True)


def build_dashboard(
    response: UsageResponse,
    now: datetime,
    width: int = DEFAULT_WIDTH,
) -> list[Text]:
    layout = Layout(width)
    lines = [layout.centered(Text(TITLE, style="bold bright_cyan")), layout.rule("=")]

    meta_line = format_meta_line(response)
    if meta_line is not None:
        lines.append(layout.centered(meta_line))
        lines.append(layout.rule("-"))

    lines.append(layout.padded(Text("Session-Based Usage Limits", style="bold")))
    lines.append(
        layout.padded(Text("Based on rate-limit windows from the API", style="dim"))
    )
    lines.append(layout.rule("-"))

    rate_limit = response.rate_limit
    if rate_limit is None:
        lines.append(layout.padded("No rate-limit data available."))
    else:
        primary = rate_limit.primary_window
        secondary = rate_limit.secondary_window
        if primary is not None:
            label = f"5h Window ({format_window_minutes(primary)})"
            lines.append(window_line(layout, primary, label, now))
        lines.append(layout.rule("-"))
        if secondary is not None:
            label = f"Weekly Window ({format_window_minutes(secondary)})"
            lines.append(window_line(layout, secondary, label, now))
        lines.append(layout.rule("-"))
        lines.append(pace_section(layout, primary, secondary, now))

    lines.append(layout.rule("="))
    return lines


def window_line(
    layout: Layout, window: WindowSnapshot, label: str, now: datetime
) -> Text:
    used = max(0, min(100, window.used_percent))
    remaining = 100 - used
    return layout.bar_line(label, remaining, reset_label(window, now))


def pace_section(
    layout: Layout,
    primary: WindowSnapshot | None,
    secondary: WindowSnapshot | None,
    now: datetime,
) -> Text:
    for window, default_minutes in (
        (secondary, WEEKLY_WINDOW_MINUTES),
        (primary, FIVE_HOUR_WINDOW_MINUTES),
    ):
        if window is None:
            continue
        pace = project(window, now, default_minutes)
        if pace is not None:
            return pace_line(layout, pace, visible_width(reset_label(window, now)))
    return layout.padded(Text("Pace: unavailable", style="dim"))


def pace_line(layout: Layout, pace: UsagePace, anchor_width: int) -> Text:
    style = stage_style(pace.stage)
    left = Text(f"Pace: {pace.symbol} ")
    left.append(pace.description, style=style)
    left.append(" (")
    left.append(format_delta(pace), style=style)
    left.append(")")
    right = Text(f"ETA: {format_eta(pace)}", style=EMPTY_STYLE)
    return layout.two_end(left, right, anchor_width)


def reset_label(window: WindowSnapshot, now: datetime) -> Text:
    return Text(f"reset {format_reset_time(window.reset_at, now)}", style="dim")


def format_reset_time(reset_at: int, now: datetime) -> str:
    seconds = reset_at - now.timestamp()
    days = int(seconds / 86400)
    hours = int(seconds / 3600)
    minutes = int(seconds / 60)
    if hours > 24:
        leftover = hours % 24
        return f"{days}d {leftover}h" if leftover else f"{days}d"
    if minutes > 60:
        leftover = minutes % 60
        return f"{hours}h {leftover}m" if leftover else f"{hours}h"
    return f"{minutes}m"


def format_window_minutes(window: WindowSnapshot) -> str:
    minutes = window.limit_window_seconds // 60
    if minutes >= 60:
        hours, mins = divmod(minutes, 60)
        return f"{hours}h {mins}m" if mins else f"{hours}h"
    return f"{minutes}m"


def format_meta_line(response: UsageResponse) -> Text | None:
    parts: list[Text] = []
    if response.plan is not None:
        parts.append(Text(f"plan: {str(response.plan).upper()}", style=NOMINAL))
    if response.credits is not None:
        parts.append(
            Text(f"credits: {format_credits(response.credits)}", style=NOMINAL)
        )
    if not parts:
        return None
    line = Text("[ ")
    line.append_text(Text(" | ").join(parts))
    line.append(" ]")
    return line


def format_credits(credits: CreditDetails) -> str:
    if not credits.has_credits:
        return "None"
    if credits.unlimited:
        return "Unlimited"
    if credits.balance is not None:
        return f"${credits.balance:.2f}"
    return "None"
