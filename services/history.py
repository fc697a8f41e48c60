# services/history.py -- read side over persisted attempts
from __future__ import annotations

import logging
import math
from datetime import UTC, datetime, timedelta
from typing import Any, Dict, Optional

from sqlalchemy import desc, distinct, func, select
from sqlalchemy.exc import OperationalError, ProgrammingError
from sqlalchemy.orm import Session

import config
from bank import filter_metadata
from errors import NotFoundError
from models import Question, TestAnswer, TestQuestion, TestResult
from schemas.tests import (
    HistoryItem,
    HistoryPage,
    Pagination,
    ReviewedQuestion,
    SubjectRef,
    TestDetail,
)
from services.cache import ResultCache, with_cache

logger = logging.getLogger(__name__)

TREND_DAYS = 30
MAX_PAGE_SIZE = 100

_MISSING_SCHEMA_MARKERS = (
    "no such table",
    "no such column",
    "does not exist",
    "doesn't exist",
    "unknown column",
)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _round2(value: Any) -> float:
    return round(float(value), 2) if value is not None else 0.0


def _is_missing_schema_error(exc: Exception) -> bool:
    text = str(getattr(exc, "orig", exc)).lower()
    return any(marker in text for marker in _MISSING_SCHEMA_MARKERS)


# --- History ------------------------------------------------------------------------


def get_history(
    db: Session, cache: ResultCache, user_id: int, page: int = 1, limit: int = 10
) -> Dict[str, Any]:
    page = max(1, page)
    limit = max(1, min(limit, MAX_PAGE_SIZE))

    def compute() -> Dict[str, Any]:
        total = db.scalar(
            select(func.count()).select_from(TestResult).where(TestResult.user_id == user_id)
        )
        rows = db.scalars(
            select(TestResult)
            .where(TestResult.user_id == user_id)
            .order_by(TestResult.created_at.desc(), TestResult.id.desc())
            .limit(limit)
            .offset((page - 1) * limit)
        ).all()

        return HistoryPage(
            pagination=Pagination(
                page=page, limit=limit, total=total, pages=math.ceil(total / limit)
            ),
            tests=[
                HistoryItem(
                    id=t.id,
                    totalQuestions=t.total_questions,
                    score=_round2(t.score),
                    correctAnswers=t.correct_answers,
                    timeTaken=t.time_taken,
                    completedAt=_iso(t.completed_at or t.created_at),
                    subject=SubjectRef(name=t.degree),
                )
                for t in rows
            ],
        ).model_dump(mode="json")

    return with_cache(
        cache,
        f"user:{user_id}:tests:{page}:{limit}",
        config.CACHE_TTL_HISTORY,
        compute,
        cache_if=lambda r: bool(r["tests"]),
    )


# --- Stats ----------------------------------------------------------------------------


def empty_stats() -> Dict[str, Any]:
    return {
        "overall": {
            "totalTests": 0,
            "totalScore": 0.0,
            "averageScore": 0.0,
            "highestScore": 0.0,
            "totalTime": 0,
            "subjectsCovered": 0,
        },
        "bySubject": [],
        "recentTrend": [],
    }


def _compute_stats(db: Session, user_id: int) -> Dict[str, Any]:
    mine = TestResult.user_id == user_id

    overall = db.execute(
        select(
            func.count(TestResult.id),
            func.sum(TestResult.score),
            func.avg(TestResult.score),
            func.max(TestResult.score),
            func.sum(TestResult.time_taken),
            func.count(distinct(TestResult.degree)),
        ).where(mine)
    ).one()

    avg_score = func.avg(TestResult.score).label("avg_score")
    by_subject = db.execute(
        select(TestResult.degree, func.count(TestResult.id), avg_score, func.max(TestResult.score))
        .where(mine)
        .group_by(TestResult.degree)
        .order_by(desc(avg_score))
    ).all()

    since = datetime.now(UTC) - timedelta(days=TREND_DAYS)
    day = func.date(TestResult.created_at).label("day")
    trend = db.execute(
        select(day, func.count(TestResult.id), func.avg(TestResult.score))
        .where(mine, TestResult.created_at >= since)
        .group_by(day)
        .order_by(day)
    ).all()

    total_tests, total_score, average, highest, total_time, covered = overall
    return {
        "overall": {
            "totalTests": total_tests,
            "totalScore": _round2(total_score),
            "averageScore": _round2(average),
            "highestScore": _round2(highest),
            "totalTime": int(total_time or 0),
            "subjectsCovered": covered,
        },
        "bySubject": [
            {
                "subject": {"name": degree},
                "testsTaken": n,
                "averageScore": _round2(avg),
                "highestScore": _round2(best),
            }
            for degree, n, avg, best in by_subject
        ],
        "recentTrend": [
            {
                "date": d.isoformat() if hasattr(d, "isoformat") else str(d),
                "testsTaken": n,
                "averageScore": _round2(avg),
            }
            for d, n, avg in trend
        ],
    }


def get_stats(db: Session, cache: ResultCache, user_id: int) -> Dict[str, Any]:
    def compute() -> Dict[str, Any]:
        try:
            return _compute_stats(db, user_id)
        except (OperationalError, ProgrammingError) as e:
            # a half-migrated schema should not take the dashboard down
            if not _is_missing_schema_error(e):
                raise
            db.rollback()
            logger.warning("stats query hit a missing table/column, returning empty stats: %s", e)
            return empty_stats()

    return with_cache(
        cache,
        f"user:{user_id}:stats",
        config.CACHE_TTL_STATS,
        compute,
        cache_if=lambda r: r["overall"]["totalTests"] > 0,
    )


# --- Detail ---------------------------------------------------------------------------


def _build_detail(db: Session, test_id: int, user_id: int) -> Dict[str, Any]:
    tr = db.scalar(
        select(TestResult).where(TestResult.id == test_id, TestResult.user_id == user_id)
    )
    if tr is None:
        # same answer whether the attempt is missing or someone else's
        raise NotFoundError("Test result not found")

    answers = {
        a.question_id: a
        for a in db.scalars(
            select(TestAnswer).where(TestAnswer.test_result_id == tr.id).order_by(TestAnswer.id)
        )
    }
    question_ids = list(
        db.scalars(
            select(TestQuestion.question_id)
            .where(TestQuestion.test_result_id == tr.id)
            .order_by(TestQuestion.id)
        )
    )
    if not question_ids:
        # attempts from before the full question list was tracked
        question_ids = list(answers)

    questions = {
        q.id: q for q in db.scalars(select(Question).where(Question.id.in_(question_ids)))
    }
    missing = [qid for qid in question_ids if qid not in questions]
    if missing:
        logger.warning(
            "test %s references %d question(s) no longer in the bank, left out of the review: %s",
            tr.id,
            len(missing),
            missing,
        )

    reviewed = []
    for qid in question_ids:
        q = questions.get(qid)
        if q is None:
            continue
        a = answers.get(qid)
        reviewed.append(
            ReviewedQuestion(
                questionId=qid,
                question=q.question,
                options=q.options,
                correctOption=q.answer,
                selectedOption=a.selected_answer if a else None,
                isCorrect=bool(a and a.is_correct),
                isUnanswered=a is None,
            )
        )

    unanswered = sum(1 for r in reviewed if r.isUnanswered)
    correct = sum(1 for r in reviewed if r.isCorrect)
    answered = len(reviewed) - unanswered

    return TestDetail(
        testId=tr.id,
        subject=SubjectRef(name=tr.degree),
        totalQuestions=tr.total_questions,
        answeredQuestions=answered,
        correctAnswers=correct,
        incorrectAnswers=answered - correct,
        unansweredQuestions=unanswered,
        score=_round2(tr.score),
        timeTaken=tr.time_taken,
        status=tr.status,
        questions=reviewed,
        submittedAt=_iso(tr.completed_at or tr.created_at),
    ).model_dump(mode="json")


def get_test_detail(db: Session, cache: ResultCache, test_id: int, user_id: int) -> Dict[str, Any]:
    return with_cache(
        cache,
        f"test:{test_id}:{user_id}",
        config.CACHE_TTL_DETAIL,
        lambda: _build_detail(db, test_id, user_id),
    )


# --- Filters ----------------------------------------------------------------------------


def get_filters(db: Session, cache: ResultCache) -> Dict[str, Any]:
    return with_cache(
        cache,
        "test:filters",
        config.CACHE_TTL_FILTERS,
        lambda: filter_metadata(db),
        cache_if=lambda r: bool(r["subjects"] or r["exams"]),
    )
