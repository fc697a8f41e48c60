import pytest
from fastapi.testclient import TestClient

import config
from conftest import USER
from errors import ValidationError
from main import app
from services.timing import allocate, allowed_submission_time

client = TestClient(app)


def test_allocate_ten_questions():
    a = allocate(10, seconds_per_question=60)
    assert a.total_seconds == 600
    assert a.breakdown.minutes == 10 and a.breakdown.seconds == 0


def test_allocate_is_linear_in_question_count():
    for n in range(0, 40):
        assert allocate(n).total_seconds == n * config.SECONDS_PER_QUESTION


def test_allocate_zero_questions_is_zero():
    a = allocate(0)
    assert a.total_seconds == 0
    assert a.breakdown.questions == 0


def test_allocate_is_deterministic():
    assert allocate(7).model_dump_json() == allocate(7).model_dump_json()


def test_allocate_breakdown_splits_minutes():
    a = allocate(3, seconds_per_question=45)
    assert a.total_seconds == 135
    assert (a.breakdown.minutes, a.breakdown.seconds) == (2, 15)


@pytest.mark.parametrize("bad", [-1, True, 2.5, "3"])
def test_allocate_rejects_bad_counts(bad):
    with pytest.raises(ValidationError):
        allocate(bad)


def test_allowed_submission_time_adds_grace():
    assert allowed_submission_time(4) == allocate(4).total_seconds + config.TIME_GRACE_SECONDS


def test_calculate_time_endpoint():
    r = client.post("/questions/calculate-time", json={"questions": 10}, headers=USER)
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["data"]["totalTimeInSeconds"] == 10 * config.SECONDS_PER_QUESTION
    assert body["data"]["breakdown"]["questions"] == 10


def test_calculate_time_negative_is_400():
    r = client.post("/questions/calculate-time", json={"questions": -1}, headers=USER)
    assert r.status_code == 400
    assert r.json()["success"] is False


def test_calculate_time_not_a_number_is_400():
    r = client.post("/questions/calculate-time", json={"questions": "many"}, headers=USER)
    assert r.status_code == 400
    assert r.json()["error"]["kind"] == "validation"


def test_calculate_time_requires_user():
    r = client.post("/questions/calculate-time", json={"questions": 10})
    assert r.status_code == 401
    assert r.json()["success"] is False
