# bank.py -- read access to the question bank

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Literal, Optional

from pydantic import BaseModel, ValidationError
from sqlalchemy import func, select
from sqlalchemy.orm import Session

import config
from errors import NotFoundError
from models import Question, Subject

logger = logging.getLogger(__name__)


def question_payload(q: Question) -> Dict[str, Any]:
    """Client-facing shape. The canonical answer is never included."""
    return {
        "id": q.id,
        "question": q.question,
        "options": dict(zip(config.ANSWER_LETTERS, q.options)),
        "difficulty": q.degree,
        "subject": {"id": q.subject_id, "name": q.subject.name if q.subject else None},
    }


def get_question(db: Session, question_id: int) -> Question:
    q = db.get(Question, question_id)
    if q is None:
        raise NotFoundError("Question not found")
    return q


def get_canonical_answers(db: Session, question_ids: Iterable[int]) -> Dict[int, str]:
    ids = list(question_ids)
    if not ids:
        return {}
    rows = db.execute(select(Question.id, Question.answer).where(Question.id.in_(ids)))
    return {qid: answer for qid, answer in rows}


def sample_questions(
    db: Session,
    count: int,
    subject_id: Optional[int] = None,
    degree: Optional[str] = None,
) -> List[Question]:
    """Random `count` questions from active subjects, optionally filtered."""
    if degree:
        n = db.scalar(select(func.count()).select_from(Question).where(Question.degree == degree))
        if not n:
            raise NotFoundError(f"No questions found for exam type: {degree}")

    if subject_id:
        n = db.scalar(
            select(func.count()).select_from(Question).where(Question.subject_id == subject_id)
        )
        if not n:
            raise NotFoundError("No questions found for selected subject")

    stmt = select(Question).join(Subject).where(Subject.is_active.is_(True))
    if subject_id:
        stmt = stmt.where(Question.subject_id == subject_id)
    if degree:
        stmt = stmt.where(Question.degree == degree)
    stmt = stmt.order_by(func.random()).limit(count)

    questions = list(db.scalars(stmt))
    if not questions:
        if subject_id and degree:
            raise NotFoundError(f"No questions found for the selected subject in {degree} exam type")
        raise NotFoundError("No questions found for the selected criteria")
    return questions


def filter_metadata(db: Session) -> Dict[str, Any]:
    subjects = db.execute(
        select(Subject.id, Subject.name).where(Subject.is_active.is_(True)).order_by(Subject.name)
    ).all()
    degrees = db.execute(
        select(Question.degree, func.count())
        .where(Question.degree.in_(config.DEGREES))
        .group_by(Question.degree)
        .order_by(Question.degree)
    ).all()
    return {
        "subjects": [{"id": sid, "name": name} for sid, name in subjects],
        "exams": [{"name": degree, "count": n} for degree, n in degrees],
    }


# --- Seeding ----------------------------------------------------------------------


class QuestionImportModel(BaseModel):
    question: str
    option1: str
    option2: str
    option3: str
    option4: str
    answer: Literal["A", "B", "C", "D"]
    subject: str
    degree: Literal["Bpharm", "Dpharm", "Both"]


def _iter_jsonl(p: Path) -> Iterable[Dict[str, Any]]:
    with p.open("r", encoding="utf-8") as f:
        for line in f:
            s = line.strip()
            if not s or s.startswith("#") or s.startswith("//"):
                continue
            try:
                yield json.loads(s)
            except json.JSONDecodeError:
                # Skip malformed rows instead of aborting the whole import
                continue


def _iter_json(p: Path) -> Iterable[Dict[str, Any]]:
    with p.open("r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError:
            data = []
    if isinstance(data, list):
        for obj in data:
            yield obj


def import_questions(db: Session, path: Path) -> int:
    """Load questions from a .json (list) or .jsonl file. Returns rows added."""
    source = _iter_jsonl(path) if path.suffix.lower() == ".jsonl" else _iter_json(path)

    subjects = {s.name: s for s in db.scalars(select(Subject))}
    added = 0
    for raw in source:
        try:
            row = QuestionImportModel(**raw)
        except (ValidationError, TypeError):
            continue

        subject = subjects.get(row.subject)
        if subject is None:
            subject = Subject(name=row.subject, is_active=True)
            db.add(subject)
            subjects[row.subject] = subject

        db.add(
            Question(
                question=row.question,
                option1=row.option1,
                option2=row.option2,
                option3=row.option3,
                option4=row.option4,
                answer=row.answer,
                degree=row.degree,
                subject=subject,
            )
        )
        added += 1

    db.commit()
    logger.info("imported %d questions from %s", added, path)
    return added
