from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from bank import get_question, question_payload
from db import get_db
from deps.auth import current_user
from schemas.questions import CalculateTimeRequest, QuestionOut
from services.timing import allocate

router = APIRouter(prefix="/questions", tags=["questions"], dependencies=[Depends(current_user)])


@router.post("/calculate-time")
def calculate_time(req: CalculateTimeRequest):
    allocation = allocate(req.questions)
    return {
        "success": True,
        "data": {
            "totalTimeInSeconds": allocation.total_seconds,
            "breakdown": allocation.breakdown.model_dump(),
        },
    }


@router.get("/{qid}")
def get_question_detail(qid: int, db: Session = Depends(get_db)):
    q = get_question(db, qid)
    return {"success": True, "data": QuestionOut(**question_payload(q)).model_dump()}
