"""Pydantic schemas for snippet endpoints."""

from typing import List, Optional

from pydantic import BaseModel, Field

from ....application.services.snippet_service import SnippetInput


class SnippetPayload(BaseModel):
    """Body for creating or editing a snippet."""

    title: str
    code: str
    language: str
    description: Optional[str] = ""
    is_public: bool = False
    tags: List[str] = Field(default_factory=list)

    def to_input(self) -> SnippetInput:
        return SnippetInput(
            title=self.title,
            code=self.code,
            language=self.language,
            description=self.description,
            is_public=self.is_public,
            tags=list(self.tags),
        )


class DuplicateRequest(BaseModel):
    title: Optional[str] = None
