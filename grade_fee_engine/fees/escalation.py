"""Urgent-fee escalation for jobs that stay open.

An open job's urgent fee goes up by a fixed number of percentage points every
elapsed step (10 minutes by default) until the job's maximum is reached.
These helpers compute the numbers only; writing them back to the job record
is the caller's job.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .. import config
from ..errors import InvalidInput

_LOGGER = logging.getLogger(__name__)


def escalated_fee_percent(
    start_percent: float,
    max_percent: float,
    elapsed_seconds: float,
    step_seconds: Optional[int] = None,
    step_percent: Optional[float] = None,
) -> float:
    step_seconds = config.URGENT_FEE_STEP_SECONDS if step_seconds is None else step_seconds
    step_percent = config.URGENT_FEE_STEP_PERCENT if step_percent is None else step_percent
    if step_seconds <= 0:
        raise InvalidInput("step_seconds", step_seconds, "step_seconds must be positive")
    if elapsed_seconds <= 0:
        return start_percent
    increments = int(elapsed_seconds // step_seconds)
    return min(start_percent + increments * step_percent, max(max_percent, start_percent))


def manual_increase(current_percent: float, max_percent: float, increase_percent: Optional[float] = None) -> float:
    """Admin-triggered increase; capped at the job's maximum."""
    increase = config.URGENT_FEE_STEP_PERCENT if increase_percent is None else increase_percent
    if increase <= 0:
        raise InvalidInput("increase_percent", increase, "increase_percent must be positive")
    if current_percent >= max_percent:
        raise InvalidInput("current_percent", current_percent, "최대 긴급 수수료에 도달했습니다.")
    new_percent = min(current_percent + increase, max_percent)
    _LOGGER.info("Urgent fee manually increased %s%% -> %s%%", current_percent, new_percent)
    return new_percent


@dataclass(frozen=True)
class EscalationPlan:
    start_percent: float
    max_percent: float
    step_seconds: int = config.URGENT_FEE_STEP_SECONDS
    step_percent: float = config.URGENT_FEE_STEP_PERCENT

    def fee_at(self, elapsed_seconds: float) -> float:
        return escalated_fee_percent(
            self.start_percent, self.max_percent, elapsed_seconds, self.step_seconds, self.step_percent
        )

    def schedule(self) -> List[Tuple[int, float]]:
        """(elapsed_seconds, percent) for every step until the cap; starts at (0, start_percent)."""
        steps: List[Tuple[int, float]] = [(0, self.start_percent)]
        if self.step_percent <= 0:
            return steps
        elapsed = 0
        current = self.start_percent
        while current < self.max_percent:
            elapsed += self.step_seconds
            current = self.fee_at(elapsed)
            steps.append((elapsed, current))
        return steps
