from __future__ import annotations

import math
import re

from rich.cells import cell_len
from rich.text import Text

from codex_usage.pace import AHEAD_STAGES, Stage

MIN_BAR_WIDTH = 10
FILL_CHAR = "█"
EMPTY_CHAR = "░"
INDICATOR = "●"

NOMINAL = "green"
WARNING = "yellow"
SEVERE = "red"
INFO = "cyan"
EMPTY_STYLE = "white"

# rich only decodes OSC sequences closed by ST, so BEL terminators are rewritten.
_OSC_BEL_RE = re.compile(r"(\x1b\][^\x07\x1b]*)\x07")


def as_text(content: str | Text) -> Text:
    if isinstance(content, Text):
        return content
    return Text.from_ansi(_OSC_BEL_RE.sub(_close_osc, content), end="")


def _close_osc(match: re.Match[str]) -> str:
    return match.group(1) + "\x1b\\"


def visible_width(content: str | Text) -> int:
    return as_text(content).cell_len


def severity_style(remaining_percent: float) -> str:
    if remaining_percent <= 10:
        return SEVERE
    if remaining_percent <= 30:
        return WARNING
    return NOMINAL


def stage_style(stage: Stage) -> str:
    if stage is Stage.ON_TRACK:
        return NOMINAL
    if stage in AHEAD_STAGES:
        return INFO
    if stage is Stage.SLIGHTLY_BEHIND:
        return WARNING
    return SEVERE


def clamp_percent(value: float) -> float:
    return max(0.0, min(100.0, value))


class Layout:
    def __init__(self, width: int) -> None:
        self.width = max(0, width)

    def rule(self, char: str = "=") -> Text:
        char_width = max(1, cell_len(char))
        count = self.width // char_width
        line = Text(char * count)
        return self._pad_right(line)

    def centered(self, content: str | Text) -> Text:
        text = as_text(content)
        free = max(0, self.width - text.cell_len)
        left = free // 2
        line = Text(" " * left)
        line.append_text(text)
        line.append(" " * (free - left))
        return line

    def padded(self, content: str | Text) -> Text:
        line = Text()
        line.append_text(as_text(content))
        return self._pad_right(line)

    def bar(
        self, remaining_percent: float, bar_width: int, style: str | None = None
    ) -> Text:
        remaining = clamp_percent(remaining_percent)
        bar_width = max(0, bar_width)
        filled = min(bar_width, math.floor(remaining / 100.0 * bar_width))
        fill_style = style or severity_style(remaining)
        text = Text()
        if filled:
            text.append(FILL_CHAR * filled, style=fill_style)
        if bar_width - filled:
            text.append(EMPTY_CHAR * (bar_width - filled), style=EMPTY_STYLE)
        return text

    def bar_budget(self, *fragments: str | Text) -> int:
        used = sum(visible_width(fragment) for fragment in fragments)
        separators = len(fragments)
        return max(MIN_BAR_WIDTH, self.width - used - separators)

    def bar_line(
        self,
        label: str | Text,
        remaining_percent: float,
        reset_text: str | Text,
    ) -> Text:
        remaining = clamp_percent(remaining_percent)
        style = severity_style(remaining)

        label_part = Text()
        label_part.append(INDICATOR, style=style)
        label_part.append(" ")
        label_part.append_text(_bold(label))
        percent_part = Text(f"{int(remaining):>3}%", style=style)
        reset_part = as_text(reset_text)

        bar_width = self.bar_budget(label_part, percent_part, reset_part)
        line = Text()
        line.append_text(label_part)
        line.append(" ")
        line.append_text(self.bar(remaining, bar_width, style))
        line.append(" ")
        line.append_text(percent_part)
        line.append(" ")
        line.append_text(reset_part)
        return self._pad_right(line)

    def two_end(
        self,
        left: str | Text,
        right: str | Text,
        anchor_width: int = 0,
    ) -> Text:
        left_text = as_text(left)
        right_text = as_text(right)
        left_width = left_text.cell_len
        right_width = right_text.cell_len

        anchor_start = max(0, self.width - max(0, anchor_width))
        max_start = max(0, self.width - right_width)
        min_start = left_width + 1
        start = max(min(anchor_start, max_start), min(min_start, max_start))
        gap = max(0, start - left_width)

        line = Text()
        line.append_text(left_text)
        line.append(" " * gap)
        line.append_text(right_text)
        return self._pad_right(line)

    def _pad_right(self, line: Text) -> Text:
        padding = self.width - line.cell_len
        if padding > 0:
            line.append(" " * padding)
        return line


def _bold(content: str | Text) -> Text:
    text = as_text(content).copy()
    text.stylize("bold")
    return text
