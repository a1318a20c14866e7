"""
Tests for post services.
"""

from datetime import timedelta
from unittest.mock import patch

import pytest
from django.utils import timezone

from apps.posts.models import Post
from apps.posts.services import (
    PostNotFoundError,
    create_post,
    delete_post,
    increment_views,
    list_posts,
    update_post,
)
from tests.accounts.factories import UserFactory
from tests.posts.factories import PostFactory


@pytest.mark.django_db
class TestCreatePost:
    def test_expires_after_lifetime(self, settings) -> None:
        settings.POST_LIFETIME_DAYS = 7
        user = UserFactory.create()
        now = timezone.now()

        with patch("django.utils.timezone.now", return_value=now):
            post = create_post(user, media_type="video", media_url="https://cdn.example.com/a.mp4")

        assert post.user == user
        assert post.views == 0
        assert post.is_boosted is False
        assert post.title == ""
        assert post.expires_at == now + timedelta(days=7)
        assert post.is_expired is False

    def test_is_expired(self) -> None:
        post = PostFactory.create(expires_at=timezone.now() - timedelta(seconds=1))

        assert post.is_expired is True


@pytest.mark.django_db
class TestListPosts:
    def test_only_own_posts_newest_first(self) -> None:
        user = UserFactory.create()
        older = PostFactory.create(user=user)
        newer = PostFactory.create(user=user)
        PostFactory.create()

        assert list(list_posts(user)) == [newer, older]


@pytest.mark.django_db
class TestUpdatePost:
    def test_edits_and_boosts(self) -> None:
        post = PostFactory.create()
        expiry = timezone.now() + timedelta(days=2)

        updated = update_post(
            post.user, post.id, title="Half price", is_boosted=True, boost_expiry=expiry
        )

        post.refresh_from_db()
        assert updated.title == post.title == "Half price"
        assert post.is_boosted is True
        assert post.boost_expiry == expiry

    def test_ignores_protected_fields(self) -> None:
        post = PostFactory.create(views=5)

        update_post(post.user, post.id, views=999, media_url="https://evil.example")

        post.refresh_from_db()
        assert post.views == 5
        assert post.media_url != "https://evil.example"

    def test_none_clears_text(self) -> None:
        post = PostFactory.create(description="Old")

        update_post(post.user, post.id, description=None)

        post.refresh_from_db()
        assert post.description == ""

    def test_other_users_post(self) -> None:
        post = PostFactory.create(title="Mine")

        with pytest.raises(PostNotFoundError):
            update_post(UserFactory.create(), post.id, title="Yours")

        post.refresh_from_db()
        assert post.title == "Mine"


@pytest.mark.django_db
class TestDeletePost:
    def test_deletes_own_post(self) -> None:
        post = PostFactory.create()

        delete_post(post.user, post.id)

        assert not Post.objects.filter(id=post.id).exists()

    def test_other_users_post_survives(self) -> None:
        post = PostFactory.create()

        with pytest.raises(PostNotFoundError):
            delete_post(UserFactory.create(), post.id)

        assert Post.objects.filter(id=post.id).exists()


@pytest.mark.django_db
class TestIncrementViews:
    def test_counts_each_view(self) -> None:
        post = PostFactory.create(views=2)

        assert increment_views(post.id) == 3
        assert increment_views(post.id) == 4

        post.refresh_from_db()
        assert post.views == 4

    def test_missing_post(self) -> None:
        with pytest.raises(PostNotFoundError):
            increment_views(999999)
