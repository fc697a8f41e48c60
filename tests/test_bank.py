import json

from sqlalchemy import select

from bank import get_canonical_answers, import_questions
from db import SessionLocal
from models import Question, Subject


def _row(**over):
    row = {
        "question": "Which drug is a beta blocker?",
        "option1": "Propranolol",
        "option2": "Aspirin",
        "option3": "Insulin",
        "option4": "Heparin",
        "answer": "A",
        "subject": "Pharmacology",
        "degree": "Bpharm",
    }
    row.update(over)
    return row


def test_import_jsonl_skips_bad_rows(tmp_path):
    p = tmp_path / "bank.jsonl"
    lines = [
        json.dumps(_row()),
        "# comment",
        "{not json",
        json.dumps(_row(answer="E")),  # invalid letter
        json.dumps(_row(question="Second", subject="Chemistry", degree="Dpharm", answer="C")),
    ]
    p.write_text("\n".join(lines), encoding="utf-8")

    with SessionLocal() as db:
        assert import_questions(db, p) == 2
        names = sorted(db.scalars(select(Subject.name)))
        assert names == ["Chemistry", "Pharmacology"]
        ids = list(db.scalars(select(Question.id).order_by(Question.id)))
        assert get_canonical_answers(db, ids + [123456]) == {ids[0]: "A", ids[1]: "C"}


def test_import_json_list(tmp_path):
    p = tmp_path / "bank.json"
    p.write_text(json.dumps([_row(), _row(question="Another")]), encoding="utf-8")
    with SessionLocal() as db:
        assert import_questions(db, p) == 2
        assert len(list(db.scalars(select(Subject)))) == 1


def test_canonical_answers_for_nothing():
    with SessionLocal() as db:
        assert get_canonical_answers(db, []) == {}
