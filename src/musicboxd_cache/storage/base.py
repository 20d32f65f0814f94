from __future__ import annotations

import typing as t
from abc import ABC, abstractmethod
from dataclasses import dataclass

from ..core.models import ReviewSummary, SocialStats, UserProfile


class ReadStore(ABC):
    """Read side of the system of record that the caches sit in front of."""

    @abstractmethod
    async def fetch_profile(self, user_id: int) -> t.Optional[UserProfile]:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    async def fetch_social_stats(self, user_id: int) -> SocialStats:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    async def fetch_top_reviews(self, user_id: int, limit: int) -> t.List[ReviewSummary]:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    async def count_unread_notifications(self, user_id: int) -> int:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    async def is_healthy(self) -> bool:  # pragma: no cover - interface
        raise NotImplementedError


@dataclass
class _User:
    id: int
    username: str
    profile_pic_url: t.Optional[str] = None
    is_blocked: bool = False


@dataclass
class _Review:
    id: int
    user_id: int
    spotify_id: str
    stars: float
    comment: str
    type: str = "album"
    is_hidden: bool = False


class InMemoryReadStore(ReadStore):
    """A simple in-memory store for dev/test.

    Holds users, reviews, follows and notifications and answers the same
    queries the database does. Mutators do not touch any cache; callers
    invalidate explicitly.
    """

    def __init__(self) -> None:
        self._users: t.Dict[int, _User] = {}
        self._reviews: t.Dict[int, _Review] = {}
        self._follows: t.Set[t.Tuple[int, int]] = set()
        self._unread: t.Dict[int, int] = {}
        self._next_review_id = 1

    def add_user(self, user_id: int, username: str, profile_pic_url: t.Optional[str] = None) -> None:
        self._users[user_id] = _User(id=user_id, username=username, profile_pic_url=profile_pic_url)

    def update_user(self, user_id: int, **changes: t.Any) -> None:
        user = self._users[user_id]
        for key, value in changes.items():
            setattr(user, key, value)

    def add_review(
        self,
        user_id: int,
        spotify_id: str,
        stars: float,
        comment: str = "",
        type: str = "album",
    ) -> int:
        review_id = self._next_review_id
        self._next_review_id += 1
        self._reviews[review_id] = _Review(review_id, user_id, spotify_id, stars, comment, type=type)
        return review_id

    def set_review_hidden(self, review_id: int, hidden: bool = True) -> None:
        self._reviews[review_id].is_hidden = hidden

    def delete_review(self, review_id: int) -> None:
        self._reviews.pop(review_id, None)

    def follow(self, follower_id: int, followee_id: int) -> None:
        self._follows.add((follower_id, followee_id))

    def unfollow(self, follower_id: int, followee_id: int) -> None:
        self._follows.discard((follower_id, followee_id))

    def notify(self, user_id: int, count: int = 1) -> None:
        self._unread[user_id] = self._unread.get(user_id, 0) + count

    def mark_notifications_read(self, user_id: int) -> None:
        self._unread.pop(user_id, None)

    def _visible_reviews(self, user_id: int) -> t.List[_Review]:
        return [r for r in self._reviews.values() if r.user_id == user_id and not r.is_hidden]

    async def fetch_profile(self, user_id: int) -> t.Optional[UserProfile]:
        user = self._users.get(user_id)
        if user is None:
            return None
        reviews = self._visible_reviews(user_id)
        avg = sum(r.stars for r in reviews) / len(reviews) if reviews else 0.0
        return UserProfile(
            user_id=user.id,
            username=user.username,
            profile_pic_url=user.profile_pic_url,
            total_reviews=len(reviews),
            avg_stars=round(avg, 2),
        )

    async def fetch_social_stats(self, user_id: int) -> SocialStats:
        return SocialStats(
            user_id=user_id,
            followers=sum(1 for _, followee in self._follows if followee == user_id),
            following=sum(1 for follower, _ in self._follows if follower == user_id),
            reviews=len(self._visible_reviews(user_id)),
        )

    async def fetch_top_reviews(self, user_id: int, limit: int) -> t.List[ReviewSummary]:
        albums = [r for r in self._visible_reviews(user_id) if r.type == "album"]
        albums.sort(key=lambda r: (r.stars, r.id), reverse=True)
        return [
            ReviewSummary(review_id=r.id, spotify_id=r.spotify_id, stars=r.stars, comment=r.comment)
            for r in albums[:limit]
        ]

    async def count_unread_notifications(self, user_id: int) -> int:
        return self._unread.get(user_id, 0)

    async def is_healthy(self) -> bool:
        return True
