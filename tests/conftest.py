import fnmatch
import os
import tempfile
from types import SimpleNamespace

# Must run before db.py is imported anywhere: the engine is built at import time.
_DB_DIR = tempfile.mkdtemp(prefix="gpat-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ["ADMIN_TOKEN"] = "admin-secret"
os.environ.pop("GRADING_API_KEY", None)
os.environ.pop("REDIS_URL", None)

import pytest  # noqa: E402
import redis  # noqa: E402

from db import Base, SessionLocal, engine  # noqa: E402
from main import app  # noqa: E402
from models import Question, Subject  # noqa: E402
from services.cache import ResultCache, get_result_cache  # noqa: E402

USER = {"x-user-id": "1"}
OTHER_USER = {"x-user-id": "2"}
ADMIN = {"x-user-id": "99", "x-admin-token": "admin-secret"}


class FakeRedis:
    """Just enough of redis.Redis for ResultCache."""

    def __init__(self):
        self.store = {}
        self.ttls = {}

    def get(self, key):
        return self.store.get(key)

    def set(self, key, value, ex=None):
        self.store[key] = value
        self.ttls[key] = ex
        return True

    def scan_iter(self, match="*"):
        return [k for k in list(self.store) if fnmatch.fnmatchcase(k, match)]

    def delete(self, *keys):
        n = 0
        for k in keys:
            if self.store.pop(k, None) is not None:
                n += 1
            self.ttls.pop(k, None)
        return n


class BrokenRedis(FakeRedis):
    """A Redis that dropped its connection."""

    def get(self, key):
        raise redis.ConnectionError("redis down")

    def set(self, key, value, ex=None):
        raise redis.ConnectionError("redis down")

    def scan_iter(self, match="*"):
        raise redis.ConnectionError("redis down")


@pytest.fixture(scope="session", autouse=True)
def _schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(autouse=True)
def _clean_tables():
    with SessionLocal() as db:
        for table in reversed(Base.metadata.sorted_tables):
            db.execute(table.delete())
        db.commit()
    yield


@pytest.fixture
def fake_cache():
    cache = ResultCache(FakeRedis(), prefix="test-cache")
    app.dependency_overrides[get_result_cache] = lambda: cache
    yield cache
    app.dependency_overrides.pop(get_result_cache, None)


@pytest.fixture
def bank():
    """
    Five Bpharm questions (answers A, B, C, D, A), two Dpharm ones, and one
    question in an inactive subject.
    """
    with SessionLocal() as db:
        pharma = Subject(name="Pharmacology", is_active=True)
        archived = Subject(name="Archived", is_active=False)
        db.add_all([pharma, archived])

        letters = ["A", "B", "C", "D", "A"]
        bpharm = [
            Question(
                question=f"Bpharm question {i}",
                option1="opt 1",
                option2="opt 2",
                option3="opt 3",
                option4="opt 4",
                answer=letter,
                degree="Bpharm",
                subject=pharma,
            )
            for i, letter in enumerate(letters, 1)
        ]
        dpharm = [
            Question(
                question=f"Dpharm question {i}",
                option1="a",
                option2="b",
                option3="c",
                option4="d",
                answer="C",
                degree="Dpharm",
                subject=pharma,
            )
            for i in (1, 2)
        ]
        hidden = Question(
            question="Retired question",
            option1="a",
            option2="b",
            option3="c",
            option4="d",
            answer="B",
            degree="Bpharm",
            subject=archived,
        )
        db.add_all(bpharm + dpharm + [hidden])
        db.commit()

        return SimpleNamespace(
            bpharm=[q.id for q in bpharm],
            dpharm=[q.id for q in dpharm],
            hidden=hidden.id,
            answers={q.id: q.answer for q in bpharm + dpharm + [hidden]},
            subject_id=pharma.id,
            archived_subject_id=archived.id,
        )
