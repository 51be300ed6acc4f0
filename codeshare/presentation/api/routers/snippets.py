"""API router for the signed-in user's snippets."""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from ....application.services.query_service import SnippetQueryService
from ....application.services.snippet_service import SnippetService
from ....core.dependencies import get_query_service, get_snippet_service
from ....domain.models import Session, Snippet
from ...api.dependencies import optional_session, require_session
from ...api.responses import envelope, respond
from ...api.schemas.snippet import DuplicateRequest, SnippetPayload

router = APIRouter(prefix="/api/snippets", tags=["snippets"])


@router.get("")
def list_snippets(
    q: Optional[str] = Query(default=None),
    session: Session = Depends(require_session),
    query_service: SnippetQueryService = Depends(get_query_service),
) -> Dict[str, Any]:
    """Own snippets, optionally filtered by a search term."""
    if q is not None and q.strip():
        snippets = query_service.search("user", q, session.user_id)
    else:
        snippets = query_service.user_snippets(session.user_id)
    return envelope([snippet.to_record() for snippet in snippets])


@router.get("/recent")
def recent_snippets(
    limit: int = Query(default=4, ge=1, le=50),
    session: Session = Depends(require_session),
    query_service: SnippetQueryService = Depends(get_query_service),
) -> Dict[str, Any]:
    snippets = query_service.recent_snippets(session.user_id, limit)
    return envelope([snippet.to_record() for snippet in snippets])


@router.post("")
def create_snippet(
    payload: SnippetPayload,
    session: Session = Depends(require_session),
    snippet_service: SnippetService = Depends(get_snippet_service),
) -> JSONResponse:
    result = snippet_service.create_snippet(session.user_id, payload.to_input())
    return respond(result, Snippet.to_record, success_status=status.HTTP_201_CREATED)


@router.get("/{snippet_id}")
def get_snippet(
    snippet_id: str,
    session: Optional[Session] = Depends(optional_session),
    snippet_service: SnippetService = Depends(get_snippet_service),
) -> JSONResponse:
    user_id = session.user_id if session else None
    return respond(snippet_service.get_snippet(user_id, snippet_id), Snippet.to_record)


@router.put("/{snippet_id}")
def update_snippet(
    snippet_id: str,
    payload: SnippetPayload,
    session: Session = Depends(require_session),
    snippet_service: SnippetService = Depends(get_snippet_service),
) -> JSONResponse:
    result = snippet_service.update_snippet(session.user_id, snippet_id, payload.to_input())
    return respond(result, Snippet.to_record)


@router.delete("/{snippet_id}")
def delete_snippet(
    snippet_id: str,
    session: Session = Depends(require_session),
    snippet_service: SnippetService = Depends(get_snippet_service),
) -> JSONResponse:
    return respond(snippet_service.delete_snippet(session.user_id, snippet_id))


@router.post("/{snippet_id}/duplicate")
def duplicate_snippet(
    snippet_id: str,
    payload: Optional[DuplicateRequest] = None,
    session: Session = Depends(require_session),
    snippet_service: SnippetService = Depends(get_snippet_service),
) -> JSONResponse:
    title = payload.title if payload else None
    result = snippet_service.duplicate_snippet(session.user_id, snippet_id, title)
    return respond(result, Snippet.to_record, success_status=status.HTTP_201_CREATED)


@router.post("/{snippet_id}/like")
def like_snippet(
    snippet_id: str,
    session: Session = Depends(require_session),
    snippet_service: SnippetService = Depends(get_snippet_service),
) -> JSONResponse:
    visible = snippet_service.get_snippet(session.user_id, snippet_id)
    if not visible.success:
        return respond(visible)
    return respond(snippet_service.like_snippet(snippet_id), Snippet.to_record)


@router.delete("/{snippet_id}/like")
def unlike_snippet(
    snippet_id: str,
    session: Session = Depends(require_session),
    snippet_service: SnippetService = Depends(get_snippet_service),
) -> JSONResponse:
    visible = snippet_service.get_snippet(session.user_id, snippet_id)
    if not visible.success:
        return respond(visible)
    return respond(snippet_service.unlike_snippet(snippet_id), Snippet.to_record)
