"""
Python client for the Blogline API.

OptimisticLike holds what a page shows for a like button: the committed
server state plus a pending guess while a toggle request is in flight.
A failed toggle rolls the guess back instead of leaving a drifted count.
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from .logging_config import get_logger

client_logger = get_logger("client")


class BlogApiError(Exception):
    """Error envelope returned by the API."""

    def __init__(self, status_code: int, message: str, error_code: Optional[str] = None):
        self.status_code = status_code
        self.message = message
        self.error_code = error_code
        super().__init__(f"{status_code} {error_code or ''}: {message}".strip())


@dataclass(frozen=True)
class LikeSnapshot:
    liked: bool
    total_likes: int


class OptimisticLike:
    """Committed/pending like state with rollback."""

    def __init__(self, liked: bool = False, total_likes: int = 0):
        self.committed = LikeSnapshot(liked, total_likes)
        self.pending: Optional[LikeSnapshot] = None

    @property
    def current(self) -> LikeSnapshot:
        return self.pending if self.pending is not None else self.committed

    def begin_toggle(self) -> LikeSnapshot:
        if self.pending is not None:
            raise RuntimeError("A like toggle is already in flight")
        liked = not self.committed.liked
        total = self.committed.total_likes + (1 if liked else -1)
        self.pending = LikeSnapshot(liked, max(total, 0))
        return self.pending

    def commit(self, server_state: LikeSnapshot) -> None:
        self.committed = server_state
        self.pending = None

    def rollback(self) -> None:
        self.pending = None


class BlogApiClient:
    """Thin wrapper over the HTTP surface. Pass any httpx.Client, including a TestClient."""

    def __init__(self, http: httpx.Client, token: Optional[str] = None):
        self.http = http
        self.token = token

    def _headers(self) -> Dict[str, str]:
        if self.token:
            return {"Authorization": f"Bearer {self.token}"}
        return {}

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        response = self.http.request(method, path, headers=self._headers(), **kwargs)
        try:
            body = response.json()
        except ValueError:
            raise BlogApiError(response.status_code, response.text or "Invalid JSON response")

        if response.is_error or not body.get("success", False):
            raise BlogApiError(
                response.status_code,
                body.get("error", "Request failed"),
                body.get("error_code"),
            )
        return body

    # Posts

    def list_posts(
        self,
        page: int = 1,
        limit: int = 10,
        category: Optional[str] = None,
        sort: str = "latest",
    ) -> Dict[str, Any]:
        """Return {"data": [...], "pagination": {...}}."""
        params: Dict[str, Any] = {"page": page, "limit": limit, "sort": sort}
        if category:
            params["category"] = category
        body = self._request("GET", "/api/posts", params=params)
        return {"data": body["data"], "pagination": body["pagination"]}

    def get_post(self, slug: str) -> Dict[str, Any]:
        return self._request("GET", f"/api/posts/{slug}")["data"]

    def create_post(self, title: str, content: str, **fields) -> Dict[str, Any]:
        return self._request("POST", "/api/posts", json={"title": title, "content": content, **fields})["data"]

    # Likes

    def like_status(self, post_id: int) -> LikeSnapshot:
        data = self._request("GET", "/api/likes", params={"postId": post_id})["data"]
        return LikeSnapshot(data["liked"], data["totalLikes"])

    def toggle_like(self, post_id: int, state: OptimisticLike) -> LikeSnapshot:
        """Flip the like optimistically, then settle on what the server reports."""
        state.begin_toggle()
        try:
            data = self._request("POST", "/api/likes", json={"postId": post_id})["data"]
        except (BlogApiError, httpx.HTTPError) as e:
            state.rollback()
            client_logger.warning("Like toggle rolled back", error=e, post_id=post_id)
            raise
        snapshot = LikeSnapshot(data["liked"], data["totalLikes"])
        state.commit(snapshot)
        return snapshot

    # Comments

    def list_comments(self, post_id: int) -> List[Dict[str, Any]]:
        return self._request("GET", "/api/comments", params={"postId": post_id})["data"]

    def add_comment(self, post_id: int, content: str) -> Dict[str, Any]:
        return self._request("POST", "/api/comments", json={"postId": post_id, "content": content})["data"]

    def edit_comment(self, comment_id: int, content: str) -> Dict[str, Any]:
        return self._request("PUT", f"/api/comments/{comment_id}", json={"content": content})["data"]

    def delete_comment(self, comment_id: int) -> None:
        self._request("DELETE", f"/api/comments/{comment_id}")
