"""
HTTP routes for the bulletin-board API.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from board.dependencies import get_store
from board.models import Comment, Post, apply_patch
from board.schemas import (
    CommentResponse,
    CommentWriteResponse,
    CreateCommentRequest,
    CreatePostRequest,
    DeleteResponse,
    HealthResponse,
    PatchPostRequest,
    PostResponse,
    PostWriteResponse,
)
from board.store import ReadResult, ResilientStore, WriteResult

logger = logging.getLogger(__name__)

router = APIRouter()

NOT_PERSISTED_WARNING = (
    "Saved on this server only; the remote store is unavailable, "
    "so this change may not persist."
)
DATA_SOURCE_HEADER = "X-Data-Source"


def _write_status(result: WriteResult) -> dict:
    if not result.success:
        raise HTTPException(status_code=500, detail="Write failed")
    return {
        "success": True,
        "persisted": result.persisted,
        "warning": None if result.persisted else NOT_PERSISTED_WARNING,
    }


def _tag_source(response: Response, result: ReadResult) -> None:
    response.headers[DATA_SOURCE_HEADER] = result.source.value


async def _load_post(store: ResilientStore, post_id: str) -> tuple[list[Post], int]:
    posts = (await store.get_posts()).value
    for index, post in enumerate(posts):
        if post.id == post_id:
            return posts, index
    raise HTTPException(status_code=404, detail="Post not found")


@router.get("/posts", response_model=list[PostResponse])
async def list_posts(response: Response, store: ResilientStore = Depends(get_store)):
    result = await store.get_posts()
    _tag_source(response, result)
    return [post.as_dict() for post in result.value]


@router.post("/posts", response_model=PostWriteResponse, status_code=201)
async def create_post(
    payload: CreatePostRequest, store: ResilientStore = Depends(get_store)
):
    post = Post.create(content=payload.content, author=payload.author)
    posts = (await store.get_posts()).value
    # Newest first.
    result = await store.set_posts([post, *posts])
    return {**_write_status(result), "data": post.as_dict()}


@router.get("/posts/{post_id}", response_model=PostResponse)
async def get_post(post_id: str, store: ResilientStore = Depends(get_store)):
    posts, index = await _load_post(store, post_id)
    return posts[index].as_dict()


@router.patch("/posts/{post_id}", response_model=PostWriteResponse)
async def patch_post(
    post_id: str,
    payload: PatchPostRequest,
    store: ResilientStore = Depends(get_store),
):
    posts, index = await _load_post(store, post_id)
    updated = apply_patch(posts[index], payload.model_dump(exclude_none=True))
    posts[index] = updated
    result = await store.set_posts(posts)
    return {**_write_status(result), "data": updated.as_dict()}


@router.delete("/posts/{post_id}", response_model=DeleteResponse)
async def delete_post(post_id: str, store: ResilientStore = Depends(get_store)):
    posts, index = await _load_post(store, post_id)
    del posts[index]
    result = await store.set_posts(posts)
    await store.delete_comments_for(post_id)
    logger.info("Deleted post %s", post_id)
    return {**_write_status(result), "id": post_id}


@router.get("/posts/{post_id}/comments", response_model=list[CommentResponse])
async def list_post_comments(
    post_id: str, response: Response, store: ResilientStore = Depends(get_store)
):
    result = await store.get_comments(post_id)
    _tag_source(response, result)
    return [comment.as_dict() for comment in result.value]


@router.get("/comments", response_model=list[CommentResponse])
async def list_comments(
    response: Response,
    post_id: str = Query(..., alias="postId", min_length=1),
    store: ResilientStore = Depends(get_store),
):
    return await list_post_comments(post_id, response, store)


@router.post("/comments", response_model=CommentWriteResponse, status_code=201)
async def create_comment(
    payload: CreateCommentRequest, store: ResilientStore = Depends(get_store)
):
    # Comments are not checked against existing posts.
    comment = Comment.create(
        post_id=payload.postId,
        content=payload.content,
        author=payload.author,
        avatar=payload.avatar,
    )
    comments = (await store.get_comments(payload.postId)).value
    result = await store.set_comments(payload.postId, [*comments, comment])
    return {**_write_status(result), "data": comment.as_dict()}


@router.get("/health", response_model=HealthResponse)
def health(store: ResilientStore = Depends(get_store)):
    return HealthResponse(
        status="ok",
        remote_configured=store.remote_configured,
        remote_reachable=store.remote_reachable,
        fallback_posts=store.fallback_size(),
    )
