import pytest

from library_portal.data.catalog import BOOKS
from library_portal.models.book import BookView
from library_portal.services.recommendation_service import (
    MAX_SCORE, TOP_N, base_score, get_profile, get_recommendations, predict_user_preference,
)


class FixedRng:
    def __init__(self, value):
        self.value = value

    def random(self):
        return self.value


def all_available():
    return [BookView(b, True) for b in BOOKS]


def test_unknown_user_gets_default_profile():
    recs = get_recommendations("someone@example.com", all_available(), rng=FixedRng(0.0))

    titles = [r.book.title for r in recs]
    assert titles[0] == "Animal Farm"
    assert set(titles) == {
        "Animal Farm", "The Great Gatsby", "To Kill a Mockingbird",
        "Pride and Prejudice", "The Catcher in the Rye",
    }
    assert recs[0].match_score == 45


def test_classic_literature_scores_at_least_forty():
    profile = get_profile("someone@example.com")
    gatsby = next(b for b in BOOKS if b.title == "The Great Gatsby")
    score, reasons = base_score(profile, gatsby)
    assert score >= 40
    assert reasons[0] == "matches your interest in Classic Literature"


def test_unavailable_books_are_skipped():
    views = [BookView(b, b.title != "Animal Farm") for b in BOOKS]
    recs = get_recommendations("someone@example.com", views, rng=FixedRng(0.0))
    assert "Animal Farm" not in [r.book.title for r in recs]


def test_known_author_bonus_and_limits():
    recs = get_recommendations("john@example.com", all_available(), rng=FixedRng(0.99))

    assert len(recs) == TOP_N
    assert all(20 < r.match_score <= MAX_SCORE for r in recs)
    scores = [r.match_score for r in recs]
    assert scores == sorted(scores, reverse=True)

    animal_farm = next(r for r in recs if r.book.title == "Animal Farm")
    # related genre + trending + Orwell
    assert animal_farm.match_score == 70


@pytest.mark.parametrize("email,book_id,expected", [
    ("john@example.com", 3, 0.95),
    ("jane@example.com", 4, 0.8),
    ("jane@example.com", 9, 0.5),
    ("nobody@example.com", 1, 0.0),
    ("john@example.com", 999, 0.0),
])
def test_predict_user_preference(email, book_id, expected):
    assert predict_user_preference(email, book_id) == pytest.approx(expected)
