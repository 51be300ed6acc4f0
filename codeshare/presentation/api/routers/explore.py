from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query

from ....application.services.query_service import SnippetQueryService
from ....core.dependencies import get_query_service
from ...api.responses import envelope

router = APIRouter(prefix="/api/explore", tags=["explore"])


@router.get("")
def public_feed(
    q: Optional[str] = Query(default=None),
    language: Optional[str] = Query(default=None),
    query_service: SnippetQueryService = Depends(get_query_service),
) -> Dict[str, Any]:
    return envelope([entry.to_record() for entry in query_service.public_feed(q, language)])


@router.get("/popular")
def popular(
    limit: int = Query(default=10, ge=1, le=100),
    query_service: SnippetQueryService = Depends(get_query_service),
) -> Dict[str, Any]:
    return envelope([entry.to_record() for entry in query_service.popular_snippets(limit)])


@router.get("/languages")
def languages(query_service: SnippetQueryService = Depends(get_query_service)) -> Dict[str, Any]:
    return envelope(query_service.language_stats())
