"""
Pydantic schemas for the bulletin-board API.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CreatePostRequest(BaseModel):
    content: str = Field(..., max_length=5000)
    author: str = Field(..., max_length=100)

    @field_validator("content", "author")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value


class PatchPostRequest(BaseModel):
    """Only these fields can be patched; any other keys in the body are ignored."""

    model_config = ConfigDict(extra="ignore")

    likes: Optional[int] = Field(default=None, ge=0)
    comments: Optional[int] = Field(default=None, ge=0)
    shares: Optional[int] = Field(default=None, ge=0)
    liked: Optional[bool] = None


class PostResponse(BaseModel):
    id: str
    content: str
    author: str
    createdAt: str
    likes: int
    comments: int
    shares: int
    liked: bool


class CreateCommentRequest(BaseModel):
    postId: str = Field(..., min_length=1)
    content: str = Field(..., max_length=2000)
    author: str = Field(..., max_length=100)
    avatar: Optional[str] = None

    @field_validator("postId", "content", "author")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value


class CommentResponse(BaseModel):
    id: str
    postId: str
    content: str
    author: str
    avatar: Optional[str] = None
    createdAt: str


class PostWriteResponse(BaseModel):
    success: bool
    persisted: bool
    warning: Optional[str] = None
    data: PostResponse


class CommentWriteResponse(BaseModel):
    success: bool
    persisted: bool
    warning: Optional[str] = None
    data: CommentResponse


class DeleteResponse(BaseModel):
    success: bool
    persisted: bool
    warning: Optional[str] = None
    id: str


class HealthResponse(BaseModel):
    status: Literal["ok"]
    remote_configured: bool
    remote_reachable: bool
    fallback_posts: int
