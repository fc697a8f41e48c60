from __future__ import annotations

from datetime import UTC, datetime
from typing import List, Optional

import sqlalchemy as sa
from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db import Base


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Subject(Base):
    __tablename__ = "subjects"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(120), unique=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    questions: Mapped[List["Question"]] = relationship(back_populates="subject")


class Question(Base):
    __tablename__ = "questions"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    question: Mapped[str] = mapped_column(Text)
    option1: Mapped[str] = mapped_column(Text)
    option2: Mapped[str] = mapped_column(Text)
    option3: Mapped[str] = mapped_column(Text)
    option4: Mapped[str] = mapped_column(Text)
    answer: Mapped[str] = mapped_column(String(1))  # canonical letter A-D
    subject_id: Mapped[int] = mapped_column(ForeignKey("subjects.id"), index=True)
    degree: Mapped[str] = mapped_column(String(16), index=True)  # Bpharm | Dpharm | Both

    subject: Mapped[Subject] = relationship(back_populates="questions")

    @property
    def options(self) -> List[str]:
        return [self.option1, self.option2, self.option3, self.option4]


class TestResult(Base):
    """One completed attempt. Written once, inside the submission transaction."""

    __tablename__ = "test_results"
    __test__ = False  # not a pytest class

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, index=True)
    degree: Mapped[str] = mapped_column(String(16))
    total_questions: Mapped[int] = mapped_column(Integer)
    answered_questions: Mapped[int] = mapped_column(Integer, default=0)
    unanswered_questions: Mapped[int] = mapped_column(Integer, default=0)
    score: Mapped[float] = mapped_column(sa.Numeric(5, 2, asdecimal=False), default=0)
    correct_answers: Mapped[int] = mapped_column(Integer, default=0)
    incorrect_answers: Mapped[int] = mapped_column(Integer, default=0)
    time_taken: Mapped[int] = mapped_column(Integer, default=0)  # seconds
    status: Mapped[str] = mapped_column(String(16), default="completed")
    started_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), default=_utcnow)
    completed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), default=_utcnow
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, index=True
    )

    questions: Mapped[List["TestQuestion"]] = relationship(
        back_populates="test_result", cascade="all, delete-orphan"
    )
    answers: Mapped[List["TestAnswer"]] = relationship(
        back_populates="test_result", cascade="all, delete-orphan"
    )


class TestQuestion(Base):
    """Which questions were shown in an attempt, answered or not."""

    __tablename__ = "test_questions"
    __test__ = False
    __table_args__ = (sa.UniqueConstraint("test_result_id", "question_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    test_result_id: Mapped[int] = mapped_column(ForeignKey("test_results.id"), index=True)
    question_id: Mapped[int] = mapped_column(ForeignKey("questions.id"))

    test_result: Mapped[TestResult] = relationship(back_populates="questions")


class TestAnswer(Base):
    __tablename__ = "test_answers"
    __test__ = False
    __table_args__ = (sa.UniqueConstraint("test_result_id", "question_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    test_result_id: Mapped[int] = mapped_column(ForeignKey("test_results.id"), index=True)
    question_id: Mapped[int] = mapped_column(ForeignKey("questions.id"))
    selected_answer: Mapped[str] = mapped_column(String(8))
    is_correct: Mapped[bool] = mapped_column(Boolean)
    time_taken: Mapped[int] = mapped_column(Integer, default=0)  # no per-question timing yet

    test_result: Mapped[TestResult] = relationship(back_populates="answers")
