"""
Tests for posts endpoints.
"""
import pytest
from conftest import bearer

from app.models import Comment, Like, Post


def make_posts(db, count, status="published", author_id="author-1", category_id=None):
    posts = [
        Post(
            title=f"Post {i}",
            slug=f"post-{i}",
            content=f"Body {i}",
            status=status,
            author_id=author_id,
            category_id=category_id,
            view_count=i,
        )
        for i in range(count)
    ]
    db.add_all(posts)
    db.commit()
    return posts


class TestPostsList:
    """Test listing posts."""

    def test_list_empty(self, client):
        response = client.get("/api/posts")
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["data"] == []
        assert data["pagination"] == {"page": 1, "limit": 10, "total": 0, "totalPages": 0}

    def test_list_includes_category_summary(self, client, post):
        response = client.get("/api/posts")
        item = response.json()["data"][0]
        assert item["slug"] == "first-post"
        assert item["category"]["slug"] == "engineering"

    def test_last_page_is_partial(self, client, db):
        make_posts(db, 25)
        response = client.get("/api/posts", params={"page": 3, "limit": 10})
        body = response.json()
        assert len(body["data"]) == 5
        assert body["pagination"] == {"page": 3, "limit": 10, "total": 25, "totalPages": 3}

    def test_page_past_the_end_is_empty(self, client, db):
        make_posts(db, 3)
        body = client.get("/api/posts", params={"page": 5}).json()
        assert body["data"] == []
        assert body["pagination"]["total"] == 3

    @pytest.mark.parametrize("params", [{"page": 0}, {"limit": 0}, {"limit": 101}])
    def test_out_of_range_paging_rejected(self, client, params):
        response = client.get("/api/posts", params=params)
        assert response.status_code == 400
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    def test_drafts_hidden_from_public_list(self, client, db):
        make_posts(db, 2, status="draft")
        body = client.get("/api/posts").json()
        assert body["pagination"]["total"] == 0

    def test_listing_drafts_requires_sign_in(self, client, db):
        make_posts(db, 2, status="draft")
        response = client.get("/api/posts", params={"status": "draft"})
        assert response.status_code == 401

    def test_listing_drafts_shows_only_own(self, client, db, author_headers):
        make_posts(db, 2, status="draft")
        db.add(Post(title="Theirs", slug="theirs", content="x", status="draft", author_id="someone-else"))
        db.commit()

        body = client.get("/api/posts", params={"status": "draft"}, headers=author_headers).json()
        assert body["pagination"]["total"] == 2
        assert all(p["author_id"] == "author-1" for p in body["data"])

    def test_filter_by_category(self, client, db, post):
        make_posts(db, 3)
        body = client.get("/api/posts", params={"category": "engineering"}).json()
        assert [p["slug"] for p in body["data"]] == ["first-post"]

    def test_unknown_category_gives_empty_page(self, client, post):
        body = client.get("/api/posts", params={"category": "nope"}).json()
        assert body["success"] is True
        assert body["data"] == []
        assert body["pagination"]["total"] == 0

    def test_popular_sort(self, client, db):
        make_posts(db, 3)
        body = client.get("/api/posts", params={"sort": "popular"}).json()
        assert [p["view_count"] for p in body["data"]] == [2, 1, 0]


class TestPostsRead:
    """Test reading single posts."""

    def test_get_by_slug(self, client, post):
        response = client.get("/api/posts/first-post")
        assert response.status_code == 200
        assert response.json()["data"]["title"] == "First Post"

    def test_get_missing_slug(self, client, db):
        response = client.get("/api/posts/missing")
        assert response.status_code == 404
        body = response.json()
        assert body["success"] is False
        assert body["error_code"] == "NOT_FOUND"

    def test_draft_not_readable_by_slug(self, client, db):
        db.add(Post(title="Draft", slug="draft", content="x", status="draft", author_id="author-1"))
        db.commit()
        assert client.get("/api/posts/draft").status_code == 404

    def test_view_count_increments_after_read(self, client, post):
        first = client.get("/api/posts/first-post").json()["data"]
        second = client.get("/api/posts/first-post").json()["data"]
        assert first["view_count"] == 0
        assert second["view_count"] == 1
        assert second["updated_at"] == first["updated_at"]

    def test_failed_view_increment_does_not_break_read(self, client, post):
        from sqlalchemy.exc import OperationalError

        from app.database import get_session_factory
        from app.main import app

        class BrokenSession:
            def execute(self, *args, **kwargs):
                raise OperationalError("UPDATE posts", {}, Exception("store unavailable"))

            def rollback(self):
                pass

            def close(self):
                pass

        app.dependency_overrides[get_session_factory] = lambda: BrokenSession
        response = client.get("/api/posts/first-post")
        assert response.status_code == 200
        assert response.json()["data"]["view_count"] == 0

    def test_get_by_id(self, client, post):
        response = client.get(f"/api/posts/id/{post.id}")
        assert response.status_code == 200
        assert response.json()["data"]["slug"] == "first-post"

    def test_draft_by_id_visible_to_author_only(self, client, db, author_headers, other_headers):
        draft = Post(title="Draft", slug="draft", content="x", status="draft", author_id="author-1")
        db.add(draft)
        db.commit()

        assert client.get(f"/api/posts/id/{draft.id}").status_code == 404
        assert client.get(f"/api/posts/id/{draft.id}", headers=other_headers).status_code == 404
        assert client.get(f"/api/posts/id/{draft.id}", headers=author_headers).status_code == 200


class TestPostsCreate:
    """Test creating posts."""

    def test_create_post(self, client, db, author_headers, category):
        response = client.post(
            "/api/posts",
            headers=author_headers,
            json={"title": "Hello, World! 안녕", "content": "# Heading\n\nSome **bold** text", "category_id": category.id},
        )
        assert response.status_code == 201
        data = response.json()["data"]
        assert data["slug"] == "hello-world-안녕"
        assert data["author_id"] == "author-1"
        assert data["status"] == "published"
        assert data["view_count"] == 0
        assert data["excerpt"] == "Heading Some bold text"
        assert data["category"]["id"] == category.id

        assert client.get("/api/posts/hello-world-안녕").status_code == 200

    def test_create_post_unauthenticated(self, client, db):
        response = client.post("/api/posts", json={"title": "T", "content": "C"})
        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"

    def test_invalid_token_is_anonymous(self, client, db):
        response = client.post(
            "/api/posts",
            headers={"Authorization": "Bearer not-a-token"},
            json={"title": "T", "content": "C"},
        )
        assert response.status_code == 401

    @pytest.mark.parametrize("body", [{"title": "   ", "content": "C"}, {"title": "T", "content": ""}, {"content": "C"}])
    def test_title_and_content_required(self, client, db, author_headers, body):
        response = client.post("/api/posts", headers=author_headers, json=body)
        assert response.status_code == 400
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    def test_derived_slug_is_disambiguated(self, client, db, author_headers):
        first = client.post("/api/posts", headers=author_headers, json={"title": "Same Title", "content": "a"})
        second = client.post("/api/posts", headers=author_headers, json={"title": "Same Title", "content": "b"})
        assert first.json()["data"]["slug"] == "same-title"
        assert second.json()["data"]["slug"] == "same-title-1"

    def test_explicit_duplicate_slug_conflicts(self, client, post, author_headers):
        response = client.post(
            "/api/posts",
            headers=author_headers,
            json={"title": "Another", "content": "x", "slug": "first-post"},
        )
        assert response.status_code == 409
        assert response.json()["error_code"] == "CONFLICT"

    def test_invalid_explicit_slug(self, client, db, author_headers):
        response = client.post(
            "/api/posts",
            headers=author_headers,
            json={"title": "Another", "content": "x", "slug": "Not Valid!"},
        )
        assert response.status_code == 400

    def test_title_without_slug_characters(self, client, db, author_headers):
        response = client.post("/api/posts", headers=author_headers, json={"title": "!!!", "content": "x"})
        assert response.status_code == 400

    def test_unknown_category_rejected(self, client, db, author_headers):
        response = client.post(
            "/api/posts",
            headers=author_headers,
            json={"title": "T", "content": "C", "category_id": 999},
        )
        assert response.status_code == 400


class TestGenerateSlug:
    """Test slug suggestions."""

    def test_free_slug(self, client, db):
        response = client.post("/api/posts/generate-slug", json={"title": "Brand New"})
        assert response.json()["data"] == {"slug": "brand-new", "isUnique": True}

    def test_taken_slug_gets_suffix(self, client, post):
        response = client.post("/api/posts/generate-slug", json={"title": "First Post"})
        assert response.json()["data"] == {"slug": "first-post-1", "isUnique": False}

    def test_blank_title(self, client, db):
        response = client.post("/api/posts/generate-slug", json={"title": "  "})
        assert response.status_code == 400


class TestPostsUpdateDelete:
    """Test author-only mutations."""

    def test_update_own_post(self, client, post, author_headers):
        response = client.put(
            f"/api/posts/{post.id}",
            headers=author_headers,
            json={"title": "Renamed", "status": "archived"},
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["title"] == "Renamed"
        assert data["status"] == "archived"
        assert data["slug"] == "first-post"
        assert data["author_id"] == "author-1"

    def test_author_id_not_writable(self, client, db, post, author_headers):
        client.put(f"/api/posts/{post.id}", headers=author_headers, json={"author_id": "thief", "view_count": 99})
        db.expire_all()
        stored = db.get(Post, post.id)
        assert stored.author_id == "author-1"
        assert stored.view_count == 0

    def test_clear_category(self, client, post, author_headers):
        response = client.put(f"/api/posts/{post.id}", headers=author_headers, json={"category_id": None})
        assert response.json()["data"]["category_id"] is None

    def test_update_requires_sign_in(self, client, post):
        response = client.put(f"/api/posts/{post.id}", json={"title": "X"})
        assert response.status_code == 401

    def test_update_by_other_user_forbidden(self, client, db, post, other_headers):
        response = client.put(f"/api/posts/{post.id}", headers=other_headers, json={"title": "X"})
        assert response.status_code == 403
        db.expire_all()
        assert db.get(Post, post.id).title == "First Post"

    def test_update_missing_post(self, client, db, author_headers):
        response = client.put("/api/posts/999", headers=author_headers, json={"title": "X"})
        assert response.status_code == 404

    def test_update_to_taken_slug_conflicts(self, client, db, post, author_headers):
        make_posts(db, 1)
        response = client.put(f"/api/posts/{post.id}", headers=author_headers, json={"slug": "post-0"})
        assert response.status_code == 409

    def test_delete_cascades(self, client, db, post, author_headers):
        db.add(Comment(post_id=post.id, user_id="reader-2", content="Nice"))
        db.add(Like(post_id=post.id, user_id="reader-2"))
        db.commit()

        response = client.delete(f"/api/posts/{post.id}", headers=author_headers)
        assert response.status_code == 200
        assert response.json()["success"] is True

        db.expire_all()
        assert db.get(Post, post.id) is None
        assert db.query(Comment).count() == 0
        assert db.query(Like).count() == 0

    def test_delete_by_other_user_forbidden(self, client, db, post):
        response = client.delete(f"/api/posts/{post.id}", headers=bearer("reader-2"))
        assert response.status_code == 403
        db.expire_all()
        assert db.get(Post, post.id) is not None


class TestLongSlugs:
    """Suffixed slugs stay within the slug length limit."""

    def test_generated_suffix_is_accepted_on_create(self, client, db, author_headers):
        title = "a" * 100
        db.add(Post(title=title, slug=title, content="x", author_id="author-1"))
        db.commit()

        suggestion = client.post("/api/posts/generate-slug", json={"title": title}).json()["data"]
        assert suggestion == {"slug": "a" * 98 + "-1", "isUnique": False}

        response = client.post(
            "/api/posts",
            headers=author_headers,
            json={"title": "Long one", "content": "x", "slug": suggestion["slug"]},
        )
        assert response.status_code == 201

    def test_derived_slug_skips_trimmed_variants(self, client, db, author_headers):
        title = "a" * 100
        db.add_all([
            Post(title=title, slug=title, content="x", author_id="author-1"),
            Post(title=title, slug="a" * 98 + "-1", content="x", author_id="author-1"),
        ])
        db.commit()

        response = client.post("/api/posts", headers=author_headers, json={"title": title, "content": "x"})
        assert response.status_code == 201
        assert response.json()["data"]["slug"] == "a" * 98 + "-2"
