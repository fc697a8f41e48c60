from fastapi.testclient import TestClient

from conftest import USER
from main import app

client = TestClient(app)


def test_sample_questions_by_degree(bank):
    r = client.get("/tests/questions?count=3&degree=Bpharm", headers=USER)
    assert r.status_code == 200
    data = r.json()["data"]
    assert len(data) == 3
    for q in data:
        assert set(q["options"]) == {"A", "B", "C", "D"}
        assert q["difficulty"] == "Bpharm"
        assert "correctAnswer" not in q and "answer" not in q
        assert q["id"] != bank.hidden


def test_sample_never_includes_inactive_subjects(bank):
    r = client.get("/tests/questions?count=50", headers=USER)
    ids = {q["id"] for q in r.json()["data"]}
    assert ids == set(bank.bpharm) | set(bank.dpharm)


def test_sample_unknown_degree_is_404(bank):
    r = client.get("/tests/questions?degree=Both", headers=USER)
    assert r.status_code == 404
    assert r.json()["message"] == "No questions found for exam type: Both"


def test_sample_inactive_subject_is_404(bank):
    r = client.get(f"/tests/questions?subject_id={bank.archived_subject_id}", headers=USER)
    assert r.status_code == 404
    assert r.json()["success"] is False


def test_sample_count_is_bounded(bank):
    r = client.get("/tests/questions?count=0", headers=USER)
    assert r.status_code == 400


def test_filters_list_active_subjects_and_degree_counts(bank):
    r = client.get("/tests/filters", headers=USER)
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["subjects"] == [{"id": bank.subject_id, "name": "Pharmacology"}]
    assert data["exams"] == [{"name": "Bpharm", "count": 6}, {"name": "Dpharm", "count": 2}]


def test_get_question_detail_ok(bank):
    qid = bank.bpharm[0]
    r = client.get(f"/questions/{qid}", headers=USER)
    assert r.status_code == 200
    body = r.json()["data"]
    assert body["id"] == qid
    assert body["subject"]["name"] == "Pharmacology"
    assert "answer" not in body


def test_get_question_detail_404():
    r = client.get("/questions/999999", headers=USER)
    assert r.status_code == 404
    assert r.json()["success"] is False
