"""
Post API endpoints.
"""

from ninja import Router

from apps.core.schemas import ErrorResponse, MessageResponse
from apps.core.security import BearerAuth
from apps.core.types import AuthenticatedHttpRequest
from apps.posts.models import Post
from apps.posts.schemas import (
    CreatePostRequest,
    PostListResponse,
    PostResponse,
    PostSchema,
    UpdatePostRequest,
    ViewsResponse,
)
from apps.posts.services import (
    PostNotFoundError,
    create_post,
    delete_post,
    increment_views,
    list_posts,
    update_post,
)

router = Router(tags=["posts"])
bearer_auth = BearerAuth()


def _post_schema(post: Post) -> PostSchema:
    return PostSchema(
        id=post.id,
        user_id=post.user_id,
        media_type=post.media_type,
        media_url=post.media_url,
        title=post.title,
        description=post.description,
        views=post.views,
        is_boosted=post.is_boosted,
        boost_expiry=post.boost_expiry,
        expires_at=post.expires_at,
        created_at=post.created_at,
        updated_at=post.updated_at,
    )


@router.get(
    "",
    response=PostListResponse,
    auth=bearer_auth,
    operation_id="listPosts",
    summary="List your posts",
)
def list_posts_endpoint(request: AuthenticatedHttpRequest) -> PostListResponse:
    return PostListResponse(data=[_post_schema(p) for p in list_posts(request.auth)])


@router.post(
    "",
    response={201: PostResponse},
    auth=bearer_auth,
    operation_id="createPost",
    summary="Create a post",
)
def create_post_endpoint(
    request: AuthenticatedHttpRequest, payload: CreatePostRequest
) -> tuple[int, PostResponse]:
    """Create a post that expires after seven days."""
    post = create_post(
        request.auth,
        media_type=payload.media_type,
        media_url=payload.media_url,
        title=payload.title or "",
        description=payload.description or "",
    )
    return 201, PostResponse(message="Post created", data=_post_schema(post))


@router.put(
    "/{post_id}",
    response={200: PostResponse, 404: ErrorResponse},
    auth=bearer_auth,
    operation_id="updatePost",
    summary="Edit or boost your post",
)
def update_post_endpoint(
    request: AuthenticatedHttpRequest, post_id: int, payload: UpdatePostRequest
) -> tuple[int, PostResponse | ErrorResponse]:
    try:
        post = update_post(request.auth, post_id, **payload.model_dump(exclude_unset=True))
    except PostNotFoundError as e:
        return 404, ErrorResponse(message=str(e))
    return 200, PostResponse(message="Updated", data=_post_schema(post))


@router.delete(
    "/{post_id}",
    response={200: MessageResponse, 404: ErrorResponse},
    auth=bearer_auth,
    operation_id="deletePost",
    summary="Delete your post",
)
def delete_post_endpoint(
    request: AuthenticatedHttpRequest, post_id: int
) -> tuple[int, MessageResponse | ErrorResponse]:
    try:
        delete_post(request.auth, post_id)
    except PostNotFoundError as e:
        return 404, ErrorResponse(message=str(e))
    return 200, MessageResponse(message="Post deleted")


@router.post(
    "/{post_id}/increment-views",
    response={200: ViewsResponse, 404: ErrorResponse},
    auth=bearer_auth,
    operation_id="incrementPostViews",
    summary="Record a view of a post",
)
def increment_views_endpoint(
    request: AuthenticatedHttpRequest, post_id: int
) -> tuple[int, ViewsResponse | ErrorResponse]:
    try:
        views = increment_views(post_id)
    except PostNotFoundError as e:
        return 404, ErrorResponse(message=str(e))
    return 200, ViewsResponse(views=views)
