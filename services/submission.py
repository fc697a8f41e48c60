# services/submission.py
from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta
from typing import Any, Dict, List

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from bank import get_canonical_answers
from errors import AppError, TransactionFailure, ValidationError, error_messages
from models import TestAnswer, TestQuestion, TestResult
from schemas.tests import SubmitRequest, SubmitResult
from services.scoring import grade, summarize
from services.timing import allocate, allowed_submission_time

logger = logging.getLogger(__name__)


class SubmissionRequest(BaseModel):
    """Validated, strongly typed submission. Only built by validate_submission()."""

    answers: Dict[int, str]
    degree: str
    total_questions: int
    time_taken: int
    question_ids: List[int]


def validate_submission(payload: Any) -> SubmissionRequest:
    """
    Check a raw submit body and convert it to a SubmissionRequest.

    Problems are collected, not raised one by one: the ValidationError lists
    every violation found. Field errors (types, missing keys, unknown degree)
    come from one pydantic pass; the cross-field checks below need a parsed
    body and run only once that pass succeeds.
    """
    if not isinstance(payload, dict):
        raise ValidationError(["request body must be a JSON object"])
    try:
        req = SubmitRequest.model_validate(payload)
    except PydanticValidationError as e:
        raise ValidationError(error_messages(e.errors()))

    meta = req.testData
    errors: List[str] = []

    if len(req.answers) > meta.totalQuestions:
        errors.append(
            f"answers: {len(req.answers)} answers given for {meta.totalQuestions} questions"
        )

    if meta.questions:
        if len(set(meta.questions)) != len(meta.questions):
            errors.append("testData.questions: duplicate question ids")
        if len(meta.questions) != meta.totalQuestions:
            errors.append(
                f"testData.questions: expected {meta.totalQuestions} ids, got {len(meta.questions)}"
            )

    if errors:
        raise ValidationError(errors)

    # late auto-submits are still recorded
    limit = allowed_submission_time(meta.totalQuestions)
    if meta.timeTaken > limit:
        logger.warning(
            "timeTaken %ss is over the %ss allowed for %d questions",
            meta.timeTaken,
            limit,
            meta.totalQuestions,
        )

    return SubmissionRequest(
        answers=dict(req.answers),
        degree=meta.degree,
        total_questions=meta.totalQuestions,
        time_taken=meta.timeTaken,
        question_ids=list(meta.questions),
    )


def submit_test(session_factory: sessionmaker, user_id: int, request: SubmissionRequest) -> SubmitResult:
    """
    Persist one attempt atomically.

    Steps run in order inside a single transaction: header insert, question
    links, graded answers, then the header update from the stored answers.
    Any failure rolls everything back; the session is closed in every path.
    """
    allotted = allocate(request.total_questions).total_seconds
    answered = len(request.answers)

    try:
        with session_factory() as db, db.begin():
            now = datetime.now(UTC)
            header = TestResult(
                user_id=user_id,
                degree=request.degree,
                total_questions=request.total_questions,
                answered_questions=answered,
                unanswered_questions=request.total_questions - answered,
                score=0,
                correct_answers=0,
                incorrect_answers=0,
                time_taken=request.time_taken,
                status="completed",
                started_at=now - timedelta(seconds=request.time_taken),
                completed_at=now,
                created_at=now,
            )
            db.add(header)
            db.flush()
            attempt_id = header.id

            for qid in request.question_ids:
                db.add(TestQuestion(test_result_id=attempt_id, question_id=qid))
            db.flush()

            canonical = get_canonical_answers(db, request.answers.keys())
            if request.question_ids:
                linked = set(request.question_ids)
                canonical = {qid: a for qid, a in canonical.items() if qid in linked}

            graded = grade(canonical, request.answers, request.total_questions)
            for g in graded.answers:
                db.add(
                    TestAnswer(
                        test_result_id=attempt_id,
                        question_id=g.question_id,
                        selected_answer=g.selected_answer,
                        is_correct=g.is_correct,
                        time_taken=0,
                    )
                )
            db.flush()

            # totals come from what was actually stored, not from the header
            flags = db.scalars(
                select(TestAnswer.is_correct).where(TestAnswer.test_result_id == attempt_id)
            ).all()
            summary = summarize(flags, request.total_questions)

            header.score = summary.percentage_score
            header.correct_answers = summary.correct_count
            header.incorrect_answers = summary.incorrect_count
            header.answered_questions = summary.answered_count
            header.unanswered_questions = summary.unanswered_count
            db.flush()
    except AppError as e:
        logger.warning("submission for user %s rolled back: %s", user_id, e.message)
        raise
    except SQLAlchemyError as e:
        logger.error("submission for user %s rolled back: %s", user_id, e)
        raise TransactionFailure() from e

    logger.info(
        "test %s submitted by user %s: %d/%d correct (%.2f%%)",
        attempt_id,
        user_id,
        summary.correct_count,
        summary.answered_count,
        summary.percentage_score,
    )

    return SubmitResult(
        resultId=attempt_id,
        score=summary.percentage_score,
        totalQuestions=request.total_questions,
        answeredQuestions=summary.answered_count,
        unansweredQuestions=summary.unanswered_count,
        timeTaken=request.time_taken,
        correctAnswers=summary.correct_count,
        incorrectAnswers=summary.incorrect_count,
        allottedTime=allotted,
    )
