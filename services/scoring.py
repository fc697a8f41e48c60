# services/scoring.py
from __future__ import annotations

from typing import Iterable, List, Mapping, Optional

from pydantic import BaseModel

from errors import NotFoundError


class GradedAnswer(BaseModel):
    question_id: int
    selected_answer: str
    is_correct: bool


class ScoreSummary(BaseModel):
    correct_count: int
    incorrect_count: int
    answered_count: int
    unanswered_count: int
    percentage_score: float


class GradedSet(BaseModel):
    answers: List[GradedAnswer]
    summary: ScoreSummary


def normalize_answer(answer: Optional[str]) -> Optional[str]:
    # Legacy helper kept for callers that want lenient matching.
    # grade() deliberately does NOT use it: grading is exact-match.
    if not answer:
        return None
    return str(answer).strip().lower()


def percentage(correct: int, answered: int) -> float:
    if answered <= 0:
        return 0.0
    return round(correct / answered * 100, 2)


def summarize(flags: Iterable[bool], total_questions: int) -> ScoreSummary:
    """Aggregate counts from per-answer correctness flags."""
    flags = list(flags)
    answered = len(flags)
    correct = sum(1 for f in flags if f)
    return ScoreSummary(
        correct_count=correct,
        incorrect_count=answered - correct,
        answered_count=answered,
        unanswered_count=total_questions - answered,
        percentage_score=percentage(correct, answered),
    )


def grade(
    canonical: Mapping[int, str],
    submitted: Mapping[int, str],
    total_questions: int,
) -> GradedSet:
    """
    Grade `submitted` (question id -> letter) against `canonical`.

    A submitted id missing from `canonical` raises NotFoundError and nothing
    is graded; callers treat that as fatal for the whole submission.
    """
    graded: List[GradedAnswer] = []
    for qid, letter in submitted.items():
        if qid not in canonical:
            raise NotFoundError(f"Question {qid} not found")
        graded.append(
            GradedAnswer(question_id=qid, selected_answer=letter, is_correct=letter == canonical[qid])
        )

    return GradedSet(
        answers=graded,
        summary=summarize((g.is_correct for g in graded), total_questions),
    )
