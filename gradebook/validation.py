# -*- coding: utf-8 -*-
"""Advisory checks for values typed into score and weight fields."""
from __future__ import annotations

from dataclasses import dataclass
import typing as t

from gradebook.parsing import parse_number


MAX_PERCENT = 100.0


@dataclass(frozen=True)
class ScoreCheck:
    """Result of checking a score field. A blank field means "ungraded"."""
    value: t.Optional[float]
    invalid: bool
    too_high: bool

    @property
    def can_save(self) -> bool:
        return not self.invalid and not self.too_high


@dataclass(frozen=True)
class WeightCheck:
    """Result of checking a weight field. ``too_high`` is only a warning."""
    value: float
    too_high: bool


def _is_blank(raw: t.Any) -> bool:
    return raw is None or (isinstance(raw, str) and not raw.strip())


def check_score(raw: t.Any) -> ScoreCheck:
    if _is_blank(raw):
        return ScoreCheck(value=None, invalid=False, too_high=False)
    value = parse_number(raw, None)
    if value is None or value < 0:
        return ScoreCheck(value=None, invalid=True, too_high=False)
    return ScoreCheck(value=value, invalid=False, too_high=value > MAX_PERCENT)


def check_weight(raw: t.Any) -> WeightCheck:
    value = parse_number(raw, 0.0)
    return WeightCheck(value=value, too_high=value > MAX_PERCENT)
