"""
Post services - create, list, edit, delete and count views.

Only the author may edit or delete a post; anyone signed in may record a
view. A post that does not exist and a post owned by someone else look the
same to the caller.
"""

from typing import TYPE_CHECKING, Any

from django.db import transaction
from django.db.models import F, QuerySet

from apps.core.logging import get_logger
from apps.posts.models import Post

if TYPE_CHECKING:
    from apps.accounts.models import User

logger = get_logger(__name__)

EDITABLE_FIELDS = ("title", "description", "is_boosted", "boost_expiry")


class PostNotFoundError(Exception):
    """Post does not exist or belongs to another user."""

    pass


def create_post(
    user: "User",
    *,
    media_type: str,
    media_url: str,
    title: str = "",
    description: str = "",
) -> Post:
    post = Post.objects.create(
        user=user,
        media_type=media_type,
        media_url=media_url,
        title=title or "",
        description=description or "",
    )
    logger.info("post_created", post_id=post.id, user_id=user.id, media_type=media_type)
    return post


def list_posts(user: "User") -> QuerySet[Post]:
    """The user's own posts, newest first."""
    return Post.objects.filter(user=user).order_by("-created_at", "-id")


def get_own_post(user: "User", post_id: int) -> Post:
    try:
        return Post.objects.get(id=post_id, user=user)
    except Post.DoesNotExist:
        raise PostNotFoundError("Post not found") from None


def update_post(user: "User", post_id: int, **changes: Any) -> Post:
    """
    Edit the caller's post.

    Only title, description and the boost fields can change. Unknown keys
    are ignored; None clears the text fields.

    Raises:
        PostNotFoundError: If the post is missing or not the caller's.
    """
    post = get_own_post(user, post_id)

    updates = {k: v for k, v in changes.items() if k in EDITABLE_FIELDS}
    for text_field in ("title", "description"):
        if text_field in updates and updates[text_field] is None:
            updates[text_field] = ""
    if "is_boosted" in updates and updates["is_boosted"] is None:
        del updates["is_boosted"]

    if updates:
        for name, value in updates.items():
            setattr(post, name, value)
        post.save(update_fields=[*updates, "updated_at"])
        logger.info("post_updated", post_id=post.id, user_id=user.id, fields=sorted(updates))

    return post


def delete_post(user: "User", post_id: int) -> None:
    post = get_own_post(user, post_id)
    post.delete()
    logger.info("post_deleted", post_id=post_id, user_id=user.id)


def increment_views(post_id: int) -> int:
    """
    Record one view and return the new total.

    Raises:
        PostNotFoundError: If the post does not exist.
    """
    with transaction.atomic():
        updated = Post.objects.filter(id=post_id).update(views=F("views") + 1)
        if not updated:
            raise PostNotFoundError("Post not found")
        return Post.objects.values_list("views", flat=True).get(id=post_id)
