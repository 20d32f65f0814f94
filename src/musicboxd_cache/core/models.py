from __future__ import annotations

import typing as t
from dataclasses import dataclass


# Payloads stored per namespace
@dataclass
class UserProfile:
    user_id: int
    username: str
    profile_pic_url: t.Optional[str] = None
    total_reviews: int = 0
    avg_stars: float = 0.0


@dataclass
class SocialStats:
    user_id: int
    followers: int = 0
    following: int = 0
    reviews: int = 0


@dataclass
class ReviewSummary:
    review_id: int
    spotify_id: str
    stars: float
    comment: str = ""
