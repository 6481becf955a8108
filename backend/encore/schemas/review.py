"""Pydantic schemas for the review collaborator."""

from typing import Literal
from uuid import UUID

from pydantic import BaseModel


class ReviewRequest(BaseModel):
    table: str
    id: UUID
    action: Literal["approve", "reject"]
    notes: str | None = None


class ReviewErrorDetail(BaseModel):
    code: str
    message: str


class ReviewResponse(BaseModel):
    success: bool
    status: str | None = None
    production_id: UUID | None = None
    error: ReviewErrorDetail | None = None
