# routers/tests.py
from __future__ import annotations

from typing import Annotated, Any, Optional

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.orm import Session, sessionmaker

import config
from bank import question_payload, sample_questions
from db import get_db, get_session_factory
from deps.auth import CurrentUser, current_user
from errors import AuthorizationError
from services.cache import ResultCache, get_result_cache
from services.history import get_filters, get_history, get_stats, get_test_detail
from services.submission import submit_test, validate_submission

router = APIRouter(prefix="/tests", tags=["tests"])

User = Annotated[CurrentUser, Depends(current_user)]
DB = Annotated[Session, Depends(get_db)]
Cache = Annotated[ResultCache, Depends(get_result_cache)]


@router.get("/filters")
def test_filters(user: User, db: DB, cache: Cache):
    return {"success": True, "data": get_filters(db, cache)}


@router.get("/questions")
def test_questions(
    user: User,
    db: DB,
    count: int = Query(default=10, ge=1, le=config.MAX_SAMPLE_SIZE),
    subject_id: Optional[int] = None,
    degree: Optional[str] = None,
):
    questions = sample_questions(db, count, subject_id=subject_id, degree=degree)
    return {"success": True, "data": [question_payload(q) for q in questions]}


@router.post("/submit")
def submit(
    user: User,
    payload: Annotated[Any, Body()],
    session_factory: Annotated[sessionmaker, Depends(get_session_factory)],
):
    request = validate_submission(payload)
    result = submit_test(session_factory, user.id, request)
    return {"success": True, "data": result.model_dump()}


@router.get("/history")
def my_history(
    user: User,
    db: DB,
    cache: Cache,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
):
    return {"success": True, "data": get_history(db, cache, user.id, page, limit)}


@router.get("/history/{user_id}")
def user_history(
    user_id: int,
    user: User,
    db: DB,
    cache: Cache,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
):
    if user_id != user.id and not user.is_admin:
        raise AuthorizationError("Not allowed to view another user's history")
    return {"success": True, "data": get_history(db, cache, user_id, page, limit)}


@router.get("/stats")
def stats(user: User, db: DB, cache: Cache):
    return {"success": True, "data": get_stats(db, cache, user.id)}


@router.get("/results/{test_id}")
def test_results(test_id: int, user: User, db: DB, cache: Cache):
    return {"success": True, "data": get_test_detail(db, cache, test_id, user.id)}


@router.get("/{test_id}")
def test_by_id(test_id: int, user: User, db: DB, cache: Cache):
    return {"success": True, "data": get_test_detail(db, cache, test_id, user.id)}
