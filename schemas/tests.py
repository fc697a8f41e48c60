# schemas/tests.py
from __future__ import annotations

from typing import Annotated, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

import config

AnswerLetter = Annotated[str, Field(min_length=1, max_length=8)]


# ---------- Submit ----------


class TestDataIn(BaseModel):
    __test__ = False

    degree: str
    totalQuestions: int = Field(ge=0)
    # informational only; the server recomputes both
    answeredQuestions: Optional[int] = Field(default=None, ge=0)
    unansweredQuestions: Optional[int] = Field(default=None, ge=0)
    timeTaken: int = Field(ge=0)
    # absent on legacy clients that did not track the full question list
    questions: List[int] = Field(default_factory=list)

    @field_validator("degree")
    @classmethod
    def _known_degree(cls, v: str) -> str:
        if v not in config.DEGREES:
            raise ValueError(f"must be one of {', '.join(config.DEGREES)}")
        return v


class SubmitRequest(BaseModel):
    answers: Dict[int, AnswerLetter] = Field(default_factory=dict)
    testData: TestDataIn


class SubmitResult(BaseModel):
    resultId: int
    score: float
    totalQuestions: int
    answeredQuestions: int
    unansweredQuestions: int
    timeTaken: int
    correctAnswers: int
    incorrectAnswers: int
    allottedTime: int


# ---------- Read side ----------


class SubjectRef(BaseModel):
    name: str


class HistoryItem(BaseModel):
    id: int
    totalQuestions: int
    score: float
    correctAnswers: int
    timeTaken: int
    completedAt: Optional[str]
    subject: SubjectRef


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class HistoryPage(BaseModel):
    pagination: Pagination
    tests: List[HistoryItem]


class ReviewedQuestion(BaseModel):
    questionId: int
    question: str
    options: List[str]
    correctOption: str
    selectedOption: Optional[str] = None
    isCorrect: bool
    isUnanswered: bool


class TestDetail(BaseModel):
    __test__ = False

    testId: int
    subject: SubjectRef
    totalQuestions: int
    answeredQuestions: int
    correctAnswers: int
    incorrectAnswers: int
    unansweredQuestions: int
    score: float
    timeTaken: int
    status: str
    questions: List[ReviewedQuestion]
    submittedAt: Optional[str]
