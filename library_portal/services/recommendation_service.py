from __future__ import annotations

import random
from dataclasses import asdict, dataclass
from typing import Iterable, List, Optional

from library_portal.models.book import Book, BookView
from library_portal.repositories.book_repo import BookRepo

EXACT_GENRE = 40
RELATED_GENRE = 25
TRENDING = 20
KNOWN_AUTHOR = 15
JITTER = 10
MIN_SCORE = 20
MAX_SCORE = 95
TOP_N = 5

USER_PROFILES = {
    "john@example.com": {
        "preferred_genres": ["Classic Literature", "Dystopian Fiction"],
        "borrowing_history": ["The Great Gatsby", "1984"],
        "reading_level": "advanced",
    },
    "jane@example.com": {
        "preferred_genres": ["Classic Literature", "Romance"],
        "borrowing_history": ["To Kill a Mockingbird"],
        "reading_level": "intermediate",
    },
}

DEFAULT_PROFILE = {
    "preferred_genres": ["Classic Literature"],
    "borrowing_history": [],
    "reading_level": "beginner",
}

TRENDING_TITLES = ["Animal Farm", "Brave New World", "Lord of the Flies", "The Hobbit"]

GENRE_SIMILARITY = {
    "Classic Literature": ["Romance", "Coming of Age", "Political Satire"],
    "Dystopian Fiction": ["Political Satire", "Adventure Fiction"],
    "Romance": ["Classic Literature", "Coming of Age"],
    "Fantasy": ["Adventure Fiction"],
    "Adventure Fiction": ["Fantasy", "Coming of Age"],
}


@dataclass(frozen=True)
class Recommendation:
    book: Book
    reason: str
    match_score: int
    available: bool = True

    def to_dict(self) -> dict:
        data = asdict(self.book)
        data.update({"reason": self.reason, "match_score": self.match_score, "available": self.available})
        return data


def get_profile(email: str) -> dict:
    return USER_PROFILES.get(email, DEFAULT_PROFILE)


def base_score(profile: dict, book: Book) -> tuple:
    """Heuristic score without jitter -> (score, reasons)."""
    score = 0
    reasons = []
    preferred = profile["preferred_genres"]

    if book.genre in preferred:
        score += EXACT_GENRE
        reasons.append(f"matches your interest in {book.genre}")

    related = [g for genre in preferred for g in GENRE_SIMILARITY.get(genre, [])]
    if book.genre in related:
        score += RELATED_GENRE
        reasons.append("similar to genres you enjoy")

    if book.title in TRENDING_TITLES:
        score += TRENDING
        reasons.append("currently trending among students")

    known_authors = set()
    for title in profile["borrowing_history"]:
        read = BookRepo.get_by_title(title)
        if read:
            known_authors.add(read.author)
    if book.author in known_authors:
        score += KNOWN_AUTHOR
        reasons.append("by an author you've read before")

    return score, reasons


def get_recommendations(email: str, books: Iterable[BookView], rng: Optional[random.Random] = None) -> List[Recommendation]:
    rng = rng or random.Random()
    profile = get_profile(email)
    picks = []

    for view in books:
        if not view.available:
            continue
        score, reasons = base_score(profile, view.book)
        # jitter keeps near-ties from always coming back in the same order
        score += rng.random() * JITTER

        if score > MIN_SCORE:
            picks.append(Recommendation(
                book=view.book,
                reason=reasons[0] if reasons else "recommended for you",
                match_score=min(round(score), MAX_SCORE),
            ))

    picks.sort(key=lambda r: r.match_score, reverse=True)
    return picks[:TOP_N]


def predict_user_preference(email: str, book_id: int) -> float:
    profile = USER_PROFILES.get(email)
    book = BookRepo.get(book_id)
    if not profile or not book:
        return 0.0

    prediction = 0.5
    if book.genre in profile["preferred_genres"]:
        prediction += 0.3

    same_author = [b.title for b in BookRepo.list_all() if b.author == book.author]
    if any(t in profile["borrowing_history"] for t in same_author):
        prediction += 0.2

    return min(prediction, 0.95)
