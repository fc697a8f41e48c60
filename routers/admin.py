from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from deps.auth import require_admin
from services.cache import ResultCache, get_result_cache

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


@router.post("/cache/clear")
def clear_cache(cache: ResultCache = Depends(get_result_cache)):
    n = cache.clear()
    logger.info("result cache cleared by admin (%d entries)", n)
    return {"success": True, "data": {"cleared": n, "enabled": cache.enabled}}
