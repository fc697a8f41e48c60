# routers/health.py
import logging
from pathlib import Path

from fastapi import APIRouter
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from alembic.config import Config
from alembic.script import ScriptDirectory
from db import engine
from errors import AppError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])

_ALEMBIC_INI = Path(__file__).resolve().parent.parent / "alembic.ini"


@router.get("/db")
def health_db():
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error("db health check failed: %s", e)
        raise AppError(f"db_error: {type(e).__name__}")
    return {"success": True, "data": {"db": "ok"}}


def _alembic_heads() -> list[str]:
    cfg = Config(str(_ALEMBIC_INI))
    cfg.set_main_option("script_location", str(_ALEMBIC_INI.parent / "alembic"))
    script = ScriptDirectory.from_config(cfg)
    return list(script.get_heads())


@router.get("/migrations")
def health_migrations():
    heads: list[str] = []
    db_ver = None
    try:
        heads = _alembic_heads()
    except Exception as e:
        logger.warning("could not read alembic heads: %s", e)

    try:
        with engine.connect() as conn:
            try:
                db_ver = conn.execute(
                    text("SELECT version_num FROM alembic_version")
                ).scalar_one_or_none()
            except SQLAlchemyError:
                db_ver = None
    except SQLAlchemyError as e:
        return {
            "success": False,
            "message": f"db_connect_failed: {type(e).__name__}",
            "data": {"code_heads": heads, "db_version": db_ver},
        }

    synced = (db_ver in heads) if heads else False
    return {
        "success": synced,
        "data": {"synced": synced, "db_version": db_ver, "code_heads": heads},
    }
