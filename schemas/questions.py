# schemas/questions.py
from typing import Dict, Optional

from pydantic import BaseModel


class SubjectOut(BaseModel):
    id: int
    name: Optional[str] = None


class QuestionOut(BaseModel):
    id: int
    question: str
    options: Dict[str, str]
    difficulty: str
    subject: SubjectOut


class CalculateTimeRequest(BaseModel):
    questions: int
