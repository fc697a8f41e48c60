# services/timing.py
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel

import config
from errors import ValidationError


class TimeBreakdown(BaseModel):
    questions: int
    secondsPerQuestion: int
    minutes: int
    seconds: int


class TimeAllocation(BaseModel):
    total_seconds: int
    breakdown: TimeBreakdown


def allocate(question_count: int, seconds_per_question: Optional[int] = None) -> TimeAllocation:
    """
    Allotted exam time for `question_count` questions.

    Zero questions get zero seconds; there is no minimum floor. The submit path
    calls this same function to re-derive the allowed time, so the timer shown
    to the user and the server-side check can never disagree.
    """
    if isinstance(question_count, bool) or not isinstance(question_count, int):
        raise ValidationError(["questions must be an integer"])
    if question_count < 0:
        raise ValidationError(["questions must be >= 0"])

    per_q = config.SECONDS_PER_QUESTION if seconds_per_question is None else seconds_per_question
    total = question_count * per_q
    minutes, seconds = divmod(total, 60)
    return TimeAllocation(
        total_seconds=total,
        breakdown=TimeBreakdown(
            questions=question_count,
            secondsPerQuestion=per_q,
            minutes=minutes,
            seconds=seconds,
        ),
    )


def allowed_submission_time(question_count: int) -> int:
    """`timeTaken` above this is logged as a late submission."""
    return allocate(question_count).total_seconds + config.TIME_GRACE_SECONDS
