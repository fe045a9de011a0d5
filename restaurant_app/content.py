"""Helpers for the file-backed site content: blog posts, reviews and event bookings."""
from __future__ import annotations

import math
import re
from datetime import date, datetime, timezone
from typing import Iterable, Optional

from restaurant_app.order_analytics import parse_timestamp

RATING_KEYS = ("5", "4", "3", "2", "1")
BOOKING_STATUSES = ("pending", "confirmed", "completed")
EVENT_TIME_RE = re.compile(r"^([01]?[0-9]|2[0-3]):[0-5][0-9]$")
PHONE_RE = re.compile(r"^[+]?[0-9\s\-()]{10,15}$")


def time_ago(timestamp: str, now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    try:
        then = parse_timestamp(timestamp)
    except ValueError:
        return ""
    if then.tzinfo is None:
        then = then.replace(tzinfo=timezone.utc)
    days = math.floor((now - then).total_seconds() / 86400)
    if days <= 0:
        return "Today"
    if days == 1:
        return "1 day ago"
    if days < 7:
        return f"{days} days ago"
    if days < 14:
        return "1 week ago"
    if days < 21:
        return "2 weeks ago"
    if days < 28:
        return "3 weeks ago"
    if days < 60:
        return "1 month ago"
    return f"{days // 30} months ago"


def empty_rating_breakdown() -> dict[str, int]:
    return {key: 0 for key in RATING_KEYS}


def review_stats(reviews: Iterable[dict]) -> dict:
    approved = [review for review in reviews if review.get("approved")]
    breakdown = empty_rating_breakdown()
    if not approved:
        return {"totalReviews": 0, "averageRating": 0, "ratingBreakdown": breakdown}
    total = 0
    for review in approved:
        total += review["rating"]
        key = str(math.floor(review["rating"]))
        if key in breakdown:
            breakdown[key] += 1
    return {
        "totalReviews": len(approved),
        "averageRating": round(total / len(approved), 2),
        "ratingBreakdown": breakdown,
    }


def approved_reviews(reviews: Iterable[dict], now: Optional[datetime] = None) -> list[dict]:
    result = [
        {**review, "date": time_ago(review.get("timestamp", ""), now)}
        for review in reviews
        if review.get("approved")
    ]
    result.sort(key=lambda review: review.get("timestamp") or "", reverse=True)
    return result


def review_error(name: str, comment: str, rating: float) -> Optional[str]:
    if not name.strip() or not comment.strip() or not rating:
        return "Name, rating, and comment are required"
    if rating < 1 or rating > 5 or not float(rating).is_integer():
        return "Rating must be an integer between 1 and 5"
    if not 2 <= len(name.strip()) <= 50:
        return "Name must be between 2 and 50 characters"
    if not 10 <= len(comment.strip()) <= 500:
        return "Comment must be between 10 and 500 characters"
    return None


def booking_stats(bookings: Iterable[dict]) -> dict:
    bookings = list(bookings)
    stats = {"totalBookings": len(bookings)}
    for status in BOOKING_STATUSES:
        stats[f"{status}Bookings"] = sum(1 for booking in bookings if booking.get("status") == status)
    return stats


def is_valid_event_date(value: str, today: Optional[date] = None) -> bool:
    today = today or date.today()
    try:
        return parse_timestamp(value).date() >= today
    except ValueError:
        return False


def booking_error(booking, today: Optional[date] = None) -> Optional[str]:
    if not all(
        [booking.name, booking.phone, booking.email, booking.event_type, booking.event_date, booking.event_time]
    ) or not booking.guest_count:
        return "All required fields must be provided"
    if not 2 <= len(booking.name.strip()) <= 100:
        return "Name must be between 2 and 100 characters"
    if not PHONE_RE.match(booking.phone.strip()):
        return "Please enter a valid phone number"
    if not is_valid_event_date(booking.event_date, today):
        return "Please select a valid future date"
    if not EVENT_TIME_RE.match(booking.event_time):
        return "Please enter a valid time in HH:MM format"
    if booking.guest_count < 1 or booking.guest_count > 200:
        return "Guest count must be between 1 and 200"
    if booking.special_requests and len(booking.special_requests) > 1000:
        return "Special requests must be less than 1000 characters"
    return None


def slugify(text: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")
    return slug or "post"


def next_post_id(posts: Iterable[dict]) -> str:
    ids = [int(post["id"]) for post in posts if str(post.get("id", "")).isdigit()]
    return str(max(ids, default=0) + 1)


def filter_blog_posts(
    posts: Iterable[dict],
    category: Optional[str] = None,
    featured: Optional[str] = None,
    published: Optional[str] = None,
    limit: Optional[int] = None,
) -> list[dict]:
    result = list(posts)
    if category:
        result = [post for post in result if (post.get("category") or "").lower() == category.lower()]
    if featured == "true":
        result = [post for post in result if post.get("featured")]
    if published is not None:
        wanted = published != "false"
        result = [post for post in result if bool(post.get("published")) == wanted]
    result.sort(key=lambda post: post.get("publishDate") or "", reverse=True)
    if limit is not None:
        result = result[:limit]
    return result
