from datetime import date, datetime, timezone
from types import SimpleNamespace

import pytest
from pydantic import ValidationError

from restaurant_app.content import (
    approved_reviews,
    booking_error,
    booking_stats,
    filter_blog_posts,
    next_post_id,
    review_error,
    review_stats,
    slugify,
    time_ago,
)
from restaurant_app.schemas import EventBookingInput

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def test_time_ago() -> None:
    assert time_ago("2024-06-01T08:00:00Z", NOW) == "Today"
    assert time_ago("2024-05-31T11:00:00Z", NOW) == "1 day ago"
    assert time_ago("2024-05-27T12:00:00Z", NOW) == "5 days ago"
    assert time_ago("2024-05-20T12:00:00Z", NOW) == "1 week ago"
    assert time_ago("2024-05-01T12:00:00Z", NOW) == "1 month ago"
    assert time_ago("2024-01-01T12:00:00Z", NOW) == "5 months ago"
    assert time_ago("whenever", NOW) == ""


def test_review_stats_counts_approved_only() -> None:
    reviews = [
        {"rating": 5, "approved": True},
        {"rating": 4, "approved": True},
        {"rating": 4, "approved": True},
        {"rating": 1, "approved": False},
    ]
    stats = review_stats(reviews)
    assert stats["totalReviews"] == 3
    assert stats["averageRating"] == 4.33
    assert stats["ratingBreakdown"] == {"5": 1, "4": 2, "3": 0, "2": 0, "1": 0}
    assert review_stats([])["averageRating"] == 0


def test_approved_reviews_newest_first() -> None:
    reviews = [
        {"id": "a", "approved": True, "timestamp": "2024-05-01T00:00:00Z"},
        {"id": "b", "approved": False, "timestamp": "2024-05-30T00:00:00Z"},
        {"id": "c", "approved": True, "timestamp": "2024-05-31T00:00:00Z"},
    ]
    result = approved_reviews(reviews, NOW)
    assert [review["id"] for review in result] == ["c", "a"]
    assert result[0]["date"] == "1 day ago"


def test_review_error_messages() -> None:
    assert review_error("", "Lovely food and service", 5) == "Name, rating, and comment are required"
    assert review_error("Asha", "Lovely food and service", 6) == "Rating must be an integer between 1 and 5"
    assert review_error("Asha", "Lovely food and service", 4.5) == "Rating must be an integer between 1 and 5"
    assert review_error("A", "Lovely food and service", 4) == "Name must be between 2 and 50 characters"
    assert review_error("Asha", "Nice", 4) == "Comment must be between 10 and 500 characters"
    assert review_error("Asha", "Lovely food and service", 4) is None


def _booking(**fields):
    values = {
        "name": "Asha Rao",
        "phone": "+91 98765 43210",
        "email": "asha@example.com",
        "event_type": "Birthday",
        "event_date": "2024-07-01",
        "event_time": "19:30",
        "guest_count": 20,
        "special_requests": "",
    }
    values.update(fields)
    return SimpleNamespace(**values)


def test_booking_validation() -> None:
    today = date(2024, 6, 1)
    assert booking_error(_booking(), today) is None
    assert booking_error(_booking(email=""), today) == "All required fields must be provided"
    assert booking_error(_booking(phone="12345"), today) == "Please enter a valid phone number"
    assert booking_error(_booking(event_date="2024-05-01"), today) == "Please select a valid future date"
    assert booking_error(_booking(event_time="7pm"), today) == "Please enter a valid time in HH:MM format"
    assert booking_error(_booking(guest_count=500), today) == "Guest count must be between 1 and 200"


def test_booking_email_is_checked_on_input() -> None:
    assert EventBookingInput(email="  ").email is None
    assert EventBookingInput(email="asha@example.com").email == "asha@example.com"
    with pytest.raises(ValidationError):
        EventBookingInput(email="asha@")


def test_booking_stats() -> None:
    stats = booking_stats([{"status": "pending"}, {"status": "confirmed"}, {"status": "pending"}, {"status": "cancelled"}])
    assert stats == {"totalBookings": 4, "pendingBookings": 2, "confirmedBookings": 1, "completedBookings": 0}


def test_blog_helpers() -> None:
    assert slugify("Five Spices, One Curry!") == "five-spices-one-curry"
    assert slugify("!!!") == "post"
    assert next_post_id([{"id": "3"}, {"id": "12"}, {"id": "draft"}]) == "13"
    assert next_post_id([]) == "1"

    posts = [
        {"id": "1", "category": "Recipes", "featured": True, "published": True, "publishDate": "2024-01-01"},
        {"id": "2", "category": "News", "featured": False, "published": True, "publishDate": "2024-03-01"},
        {"id": "3", "category": "recipes", "featured": False, "published": False, "publishDate": "2024-02-01"},
    ]
    assert [p["id"] for p in filter_blog_posts(posts)] == ["2", "3", "1"]
    assert [p["id"] for p in filter_blog_posts(posts, category="RECIPES")] == ["3", "1"]
    assert [p["id"] for p in filter_blog_posts(posts, featured="true")] == ["1"]
    assert [p["id"] for p in filter_blog_posts(posts, published="true", limit=1)] == ["2"]
