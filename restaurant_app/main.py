from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Optional
from uuid import uuid4

from fastapi import Body, Depends, FastAPI, HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from sqlalchemy.orm import Session

from restaurant_app import customers as customer_service
from restaurant_app.auth import authenticate, issue_token, verify_token
from restaurant_app.charts import inventory_charts, popular_items_radar, waiter_score_bars
from restaurant_app.config import Settings, settings
from restaurant_app.content import (
    approved_reviews,
    booking_error,
    booking_stats,
    empty_rating_breakdown,
    filter_blog_posts,
    next_post_id,
    review_error,
    review_stats,
    slugify,
)
from restaurant_app.db import SessionLocal
from restaurant_app.document_store import DocumentStore
from restaurant_app.errors import AuthError
from restaurant_app.inventory_analytics import (
    InventoryQuery,
    aggregate_categories,
    aggregate_suppliers,
    expiring_items,
    filter_inventory,
    inventory_csv,
    inventory_metrics,
    stock_status,
)
from restaurant_app.json_store import JsonFileStore
from restaurant_app.logging_config import configure_logging
from restaurant_app.migrations import (
    CheckpointLedger,
    backup_collections,
    generate_migration_report,
    load_legacy_orders,
    migrate_all,
    migrate_all_legacy_orders,
    verify_collections,
)
from restaurant_app.order_analytics import (
    PERIODS,
    build_analytics,
    parse_timestamp,
    staff_ratings,
    waiter_performance,
)
from restaurant_app.realtime_source import read_tree
from restaurant_app.schemas import (
    BlogPostInput,
    CustomerAddress,
    CustomerAddressUpdate,
    CustomerProfileCreate,
    CustomerProfileUpdate,
    EventBookingInput,
    InventoryItem,
    InventoryItemCreate,
    InventoryItemUpdate,
    LoginRequest,
    MigrationOptions,
    MigrationRequest,
    OrderAction,
    ReviewInput,
    TokenRequest,
)
from restaurant_app.scoring import (
    DEFAULT_WAITER_PRIORITY,
    INVENTORY_WEIGHTS,
    WAITER_WEIGHTS,
    WEIGHTING_VERSION,
)

logger = logging.getLogger(__name__)

ORDERS_FILE = "orders.json"
ANALYTICS_FILE = "analytics_data.json"
CREDENTIALS_FILE = "staff-credentials.json"
INVENTORY_FILE = "inventory.json"
BLOG_POSTS_FILE = "blog-posts.json"
ABOUT_US_FILE = "about-us-content.json"
REVIEWS_FILE = "customer-reviews.json"
BOOKINGS_FILE = "event-bookings.json"
ROLES_FILE = "roles-permissions.json"
DEFAULT_AVATAR = "/blog/authors/default.jpg"
INVALID_EMAIL_MESSAGE = "Please enter a valid email address"


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.log_level)
    yield


app = FastAPI(title="Restaurant Backend", lifespan=lifespan)


def _meta(request_id: Optional[str] = None, warnings: Optional[list[str]] = None) -> dict:
    return {
        "request_id": request_id or f"req_{uuid4().hex}",
        "warnings": warnings or [],
    }


def get_db() -> Session:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_settings() -> Settings:
    return settings


def get_data_store(config: Settings = Depends(get_settings)) -> JsonFileStore:
    return JsonFileStore(config.data_dir)


def get_content_store(config: Settings = Depends(get_settings)) -> JsonFileStore:
    return JsonFileStore(Path(config.data_dir) / config.content_dir)


def get_document_store(db: Session = Depends(get_db)) -> DocumentStore:
    return DocumentStore(db)


def _now() -> datetime:
    return datetime.now(timezone.utc)


@app.exception_handler(AuthError)
def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message, "code": exc.code})


@app.exception_handler(RequestValidationError)
def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [{"loc": list(error["loc"]), "msg": error["msg"]} for error in exc.errors()]
    detail = "invalid request"
    if any(error["loc"][-1:] == ["email"] for error in errors):
        detail = INVALID_EMAIL_MESSAGE
    return JSONResponse(status_code=400, content={"detail": detail, "errors": errors})


@app.exception_handler(Exception)
def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "internal server error"})


@app.get("/", tags=["root"])
def read_root() -> dict:
    return {"status": "ok"}


@app.get("/health", tags=["health"])
def health_check() -> dict:
    return {"status": "healthy"}


def _read_orders(files: JsonFileStore) -> dict:
    return files.read(ORDERS_FILE, default={"orders": []})


def _refresh_analytics(files: JsonFileStore, orders: list[dict]) -> Optional[dict]:
    try:
        analytics = build_analytics(orders)
        files.write(ANALYTICS_FILE, analytics, stamp=False)
        return analytics
    except Exception:
        logger.exception("failed to update analytics data")
        return None


@app.get("/api/orders", tags=["Orders"])
def list_orders(files: JsonFileStore = Depends(get_data_store)) -> dict:
    return {"success": True, "orders": _read_orders(files).get("orders", []), "timestamp": _now().isoformat()}


@app.post("/api/orders", tags=["Orders"])
def change_orders(payload: OrderAction, files: JsonFileStore = Depends(get_data_store)) -> dict:
    data = _read_orders(files)
    orders = data.setdefault("orders", [])

    if payload.action == "add":
        if not payload.order:
            raise HTTPException(status_code=400, detail="order is required")
        try:
            timestamp = parse_timestamp(payload.order["timestamp"]).isoformat()
        except (KeyError, ValueError):
            raise HTTPException(status_code=400, detail="order timestamp is missing or invalid")
        orders.append({**payload.order, "timestamp": timestamp})
        logger.info("order %s added", payload.order.get("id"))
        message = "Order added successfully"
    else:
        if not payload.order_id:
            raise HTTPException(status_code=400, detail="orderId is required")
        index = next((i for i, order in enumerate(orders) if order.get("id") == payload.order_id), None)
        if index is None:
            raise HTTPException(status_code=404, detail="order not found")
        order = dict(orders[index])
        if payload.action == "update" and payload.status:
            order["status"] = payload.status
            logger.info("order %s status updated to %s", payload.order_id, payload.status)
        elif payload.action == "cancel" and payload.cancellation_reason:
            cancelled_at = _now()
            if payload.cancelled_at:
                try:
                    cancelled_at = parse_timestamp(payload.cancelled_at)
                except ValueError:
                    raise HTTPException(status_code=400, detail="cancelledAt is invalid")
            order.update(
                status="cancelled",
                cancellationReason=payload.cancellation_reason,
                cancelledBy=payload.cancelled_by,
                cancelledAt=cancelled_at.isoformat(),
            )
            logger.info("order %s cancelled by %s", payload.order_id, payload.cancelled_by)
        orders[index] = order
        message = "Order cancelled successfully" if payload.action == "cancel" else "Order updated successfully"

    files.write(ORDERS_FILE, data)
    _refresh_analytics(files, orders)
    return {"success": True, "orders": orders, "message": message}


@app.delete("/api/orders", tags=["Orders"])
def clear_orders(files: JsonFileStore = Depends(get_data_store)) -> dict:
    files.write(ORDERS_FILE, {"orders": []})
    files.delete(ANALYTICS_FILE)
    logger.info("all orders and analytics cleared")
    return {"success": True, "message": "All orders cleared"}


@app.get("/api/analytics", tags=["Analytics"])
def get_analytics(files: JsonFileStore = Depends(get_data_store)) -> dict:
    analytics = files.read(ANALYTICS_FILE)
    if analytics is None:
        raise HTTPException(status_code=404, detail="analytics data not found")
    return analytics


@app.get("/api/staff/performance", tags=["Analytics"])
def staff_performance(
    priority: str = Query(default=DEFAULT_WAITER_PRIORITY),
    period: str = Query(default="fullDay"),
    files: JsonFileStore = Depends(get_data_store),
) -> dict:
    if priority not in WAITER_WEIGHTS:
        raise HTTPException(status_code=400, detail=f"unknown priority: {priority}")
    if period not in PERIODS:
        raise HTTPException(status_code=400, detail=f"unknown period: {period}")
    warnings = []
    analytics = files.read(ANALYTICS_FILE)
    if analytics is None:
        analytics = build_analytics(_read_orders(files).get("orders", []))
        warnings.append("analytics data rebuilt from orders")
    ratings = staff_ratings(files.read(CREDENTIALS_FILE, default={"users": []}).get("users", []))
    performances = waiter_performance(analytics, ratings, priority=priority, period=period)
    return {
        "data": {
            "priority": priority,
            "period": period,
            "weightingVersion": WEIGHTING_VERSION,
            "waiters": [performance.to_json() for performance in performances],
            "chart": waiter_score_bars(performances),
            "popularItems": popular_items_radar(analytics.get("popularItems", [])),
        },
        "meta": _meta(warnings=warnings),
    }


def _read_inventory(content: JsonFileStore) -> dict:
    data = content.read(INVENTORY_FILE)
    if data is None:
        data = content.write(
            INVENTORY_FILE,
            {"inventory": [], "categories": [], "suppliers": [], "units": [], "updatedBy": "system"},
        )
    return data


def _remember(values: list, value: str) -> None:
    if value not in values:
        values.append(value)


def _remember_lookups(data: dict, item: dict) -> None:
    _remember(data.setdefault("categories", []), item["category"])
    _remember(data.setdefault("suppliers", []), item["supplier"])
    _remember(data.setdefault("units", []), item["unit"])


def _name_taken(inventory: list[dict], name: str, exclude_id: Optional[str] = None) -> bool:
    return any(
        item.get("name", "").lower() == name.lower() and item.get("id") != exclude_id for item in inventory
    )


def _inventory_query(category: str, supplier: str, priority: Optional[str]) -> InventoryQuery:
    if priority is not None and priority not in INVENTORY_WEIGHTS:
        raise HTTPException(status_code=400, detail=f"unknown priority: {priority}")
    return InventoryQuery(category=category, supplier=supplier, priority=priority)


def _inventory_items(data: dict) -> list[InventoryItem]:
    return [InventoryItem.model_validate(item) for item in data.get("inventory", [])]


@app.get("/api/inventory", tags=["Inventory"])
def get_inventory(content: JsonFileStore = Depends(get_content_store)) -> dict:
    return _read_inventory(content)


@app.post("/api/inventory", tags=["Inventory"])
def create_inventory_item(payload: InventoryItemCreate, content: JsonFileStore = Depends(get_content_store)) -> dict:
    data = _read_inventory(content)
    inventory = data.setdefault("inventory", [])
    if _name_taken(inventory, payload.name):
        raise HTTPException(status_code=409, detail="item with this name already exists")

    now = _now()
    item = payload.model_dump(by_alias=True, exclude={"updated_by"})
    item["id"] = f"inv_{uuid4().hex[:12]}"
    item["lastRestocked"] = payload.last_restocked or now.isoformat()
    item["expiryDate"] = payload.expiry_date or (now + timedelta(days=365)).isoformat()
    item["finalPrice"] = payload.final_price if payload.final_price is not None else payload.unit_price
    item["status"] = stock_status(payload.current_stock, payload.minimum_stock)
    item = InventoryItem.model_validate(item).to_json()

    inventory.append(item)
    _remember_lookups(data, item)
    data["updatedBy"] = payload.updated_by or "admin"
    content.write(INVENTORY_FILE, data)
    logger.info("inventory item %s added", item["id"])
    return {"success": True, "message": "Inventory item added successfully", "item": item}


@app.put("/api/inventory", tags=["Inventory"])
def update_inventory_item(payload: InventoryItemUpdate, content: JsonFileStore = Depends(get_content_store)) -> dict:
    data = _read_inventory(content)
    inventory = data.setdefault("inventory", [])
    index = next((i for i, item in enumerate(inventory) if item.get("id") == payload.id), None)
    if index is None:
        raise HTTPException(status_code=404, detail="item not found")
    if payload.name and _name_taken(inventory, payload.name, exclude_id=payload.id):
        raise HTTPException(status_code=409, detail="another item with this name already exists")

    changes = payload.model_dump(by_alias=True, exclude_none=True, exclude={"id", "updated_by"})
    item = {**inventory[index], **changes}
    item["status"] = stock_status(item.get("currentStock", 0), item.get("minimumStock", 0))
    item = InventoryItem.model_validate(item).to_json()

    inventory[index] = item
    _remember_lookups(data, item)
    data["updatedBy"] = payload.updated_by or "admin"
    content.write(INVENTORY_FILE, data)
    logger.info("inventory item %s updated", payload.id)
    return {"success": True, "message": "Inventory item updated successfully", "item": item}


@app.delete("/api/inventory", tags=["Inventory"])
def delete_inventory_item(
    item_id: Optional[str] = Query(default=None, alias="id"),
    updated_by: Optional[str] = Query(default=None, alias="updatedBy"),
    content: JsonFileStore = Depends(get_content_store),
) -> dict:
    if not item_id:
        raise HTTPException(status_code=400, detail="item id is required")
    data = _read_inventory(content)
    inventory = data.setdefault("inventory", [])
    index = next((i for i, item in enumerate(inventory) if item.get("id") == item_id), None)
    if index is None:
        raise HTTPException(status_code=404, detail="item not found")
    deleted = inventory.pop(index)
    data["updatedBy"] = updated_by or "admin"
    content.write(INVENTORY_FILE, data)
    logger.info("inventory item %s deleted", item_id)
    return {"success": True, "message": "Inventory item deleted successfully", "deletedItem": deleted}


@app.get("/api/inventory/analytics", tags=["Inventory"])
def inventory_analytics(
    category: str = Query(default="all"),
    supplier: str = Query(default="all"),
    priority: Optional[str] = Query(default=None),
    content: JsonFileStore = Depends(get_content_store),
) -> dict:
    query = _inventory_query(category, supplier, priority)
    items = filter_inventory(_inventory_items(_read_inventory(content)), query)
    aggregates = aggregate_categories(items, query)
    return {
        "data": {
            "metrics": inventory_metrics(items),
            "categories": [aggregate.to_json() for aggregate in aggregates],
            "suppliers": [supplier.to_json() for supplier in aggregate_suppliers(items)],
            "expiringSoon": [item.to_json() for item in expiring_items(items, _now().date())],
            "weightingVersion": WEIGHTING_VERSION,
        },
        "meta": _meta(),
    }


@app.get("/api/inventory/charts", tags=["Inventory"])
def inventory_chart_data(
    category: str = Query(default="all"),
    supplier: str = Query(default="all"),
    priority: Optional[str] = Query(default="value"),
    content: JsonFileStore = Depends(get_content_store),
) -> dict:
    query = _inventory_query(category, supplier, priority)
    items = filter_inventory(_inventory_items(_read_inventory(content)), query)
    return {"data": inventory_charts(items, aggregate_categories(items, query)), "meta": _meta()}


@app.get("/api/inventory/export", tags=["Inventory"])
def export_inventory(
    category: str = Query(default="all"),
    supplier: str = Query(default="all"),
    content: JsonFileStore = Depends(get_content_store),
) -> Response:
    items = filter_inventory(_inventory_items(_read_inventory(content)), _inventory_query(category, supplier, None))
    filename = f"inventory-report-{_now().date().isoformat()}.csv"
    return Response(
        content=inventory_csv(items),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


def _read_blog(content: JsonFileStore) -> dict:
    data = content.read(BLOG_POSTS_FILE)
    if data is None:
        raise HTTPException(status_code=404, detail="blog posts file not found")
    return data


def _find_post(posts: list[dict], post_id: str) -> int:
    for index, post in enumerate(posts):
        if str(post.get("id")) == post_id or post.get("slug") == post_id:
            return index
    raise HTTPException(status_code=404, detail="blog post not found")


@app.get("/api/blog-posts", tags=["Blog"])
def list_blog_posts(
    category: Optional[str] = Query(default=None),
    featured: Optional[str] = Query(default=None),
    published: Optional[str] = Query(default=None),
    limit: Optional[int] = Query(default=None, ge=0),
    content: JsonFileStore = Depends(get_content_store),
) -> dict:
    data = _read_blog(content)
    posts = filter_blog_posts(data.get("posts", []), category, featured, published, limit)
    return {
        "posts": posts,
        "categories": data.get("categories", []),
        "settings": data.get("settings", {}),
        "total": len(posts),
    }


@app.post("/api/blog-posts", tags=["Blog"])
def create_blog_post(payload: BlogPostInput, content: JsonFileStore = Depends(get_content_store)) -> dict:
    data = _read_blog(content)
    posts = data.setdefault("posts", [])
    post = payload.model_dump(by_alias=True)
    post["id"] = next_post_id(posts)
    post["slug"] = payload.slug or slugify(payload.title)
    post["publishDate"] = _now().isoformat()
    post["views"] = 0
    posts.insert(0, post)
    content.write(BLOG_POSTS_FILE, data)
    logger.info("blog post %s created", post["id"])
    return {"success": True, "message": "Blog post created successfully", "post": post}


@app.get("/api/blog-posts/{post_id}", tags=["Blog"])
def get_blog_post(post_id: str, content: JsonFileStore = Depends(get_content_store)) -> dict:
    data = _read_blog(content)
    posts = data.get("posts", [])
    index = _find_post(posts, post_id)
    posts[index]["views"] = posts[index].get("views", 0) + 1
    content.write(BLOG_POSTS_FILE, data)
    return {"post": posts[index]}


@app.put("/api/blog-posts/{post_id}", tags=["Blog"])
def update_blog_post(
    post_id: str,
    changes: dict[str, Any] = Body(...),
    content: JsonFileStore = Depends(get_content_store),
) -> dict:
    data = _read_blog(content)
    posts = data.get("posts", [])
    index = _find_post(posts, post_id)
    changes.pop("id", None)
    posts[index] = {**posts[index], **changes}
    content.write(BLOG_POSTS_FILE, data)
    return {"success": True, "message": "Blog post updated successfully", "post": posts[index]}


@app.delete("/api/blog-posts/{post_id}", tags=["Blog"])
def delete_blog_post(post_id: str, content: JsonFileStore = Depends(get_content_store)) -> dict:
    data = _read_blog(content)
    posts = data.get("posts", [])
    deleted = posts.pop(_find_post(posts, post_id))
    content.write(BLOG_POSTS_FILE, data)
    logger.info("blog post %s deleted", deleted.get("id"))
    return {"success": True, "message": "Blog post deleted successfully", "deletedPost": deleted}


@app.get("/api/about-us-content", tags=["Content"])
def get_about_us(content: JsonFileStore = Depends(get_content_store)) -> dict:
    data = content.read(ABOUT_US_FILE)
    if data is None:
        raise HTTPException(status_code=404, detail="about us content file not found")
    return data


@app.put("/api/about-us-content", tags=["Content"])
def update_about_us(
    payload: dict[str, Any] = Body(...), content: JsonFileStore = Depends(get_content_store)
) -> dict:
    data = content.write(ABOUT_US_FILE, payload)
    return {"success": True, "message": "About Us content updated successfully", "lastUpdated": data["lastUpdated"]}


@app.get("/api/customer-reviews", tags=["Reviews"])
def list_customer_reviews(content: JsonFileStore = Depends(get_content_store)) -> dict:
    data = content.read(REVIEWS_FILE)
    if data is None:
        raise HTTPException(status_code=404, detail="reviews file not found")
    return {"reviews": approved_reviews(data.get("reviews", [])), "stats": data.get("stats")}


@app.post("/api/customer-reviews", tags=["Reviews"])
def add_customer_review(payload: ReviewInput, content: JsonFileStore = Depends(get_content_store)) -> dict:
    error = review_error(payload.name, payload.comment, payload.rating)
    if error:
        raise HTTPException(status_code=400, detail=error)
    data = content.read(
        REVIEWS_FILE,
        default={"reviews": [], "stats": {"totalReviews": 0, "averageRating": 0, "ratingBreakdown": empty_rating_breakdown()}},
    )
    reviews = data.setdefault("reviews", [])
    review = {
        "id": max((int(r["id"]) for r in reviews if str(r.get("id", "")).isdigit()), default=0) + 1,
        "name": payload.name.strip(),
        "rating": int(payload.rating),
        "comment": payload.comment.strip(),
        "date": "Just now",
        "avatar": DEFAULT_AVATAR,
        "timestamp": _now().isoformat(),
        "approved": True,
    }
    reviews.append(review)
    data["stats"] = review_stats(reviews)
    content.write(REVIEWS_FILE, data)
    return {"success": True, "message": "Review added successfully!", "review": review, "stats": data["stats"]}


@app.get("/api/all-reviews", tags=["Reviews"])
def list_all_reviews(content: JsonFileStore = Depends(get_content_store)) -> dict:
    data = content.read(REVIEWS_FILE, default={"reviews": []})
    reviews = [{**review, "id": str(review.get("id")), "source": "local"} for review in approved_reviews(data.get("reviews", []))]
    stats = review_stats(reviews)
    stats.update(localCount=len(reviews), googleCount=0)
    return {"reviews": reviews, "stats": stats, "sources": {"local": len(reviews), "google": 0}}


@app.get("/api/event-bookings", tags=["Bookings"])
def list_event_bookings(content: JsonFileStore = Depends(get_content_store)) -> dict:
    data = content.read(BOOKINGS_FILE)
    if data is None:
        return {"bookings": [], "stats": booking_stats([])}
    bookings = sorted(data.get("bookings", []), key=lambda booking: booking.get("createdAt") or "", reverse=True)
    return {"bookings": bookings, "stats": data.get("stats") or booking_stats(bookings)}


@app.post("/api/event-bookings", tags=["Bookings"])
def create_event_booking(payload: EventBookingInput, content: JsonFileStore = Depends(get_content_store)) -> dict:
    error = booking_error(payload)
    if error:
        raise HTTPException(status_code=400, detail=error)
    data = content.read(BOOKINGS_FILE, default={"bookings": []})
    bookings = data.setdefault("bookings", [])
    timestamp = _now().isoformat()
    booking = {
        "id": f"booking-{uuid4().hex[:12]}",
        "name": payload.name.strip(),
        "phone": payload.phone.strip(),
        "email": payload.email.lower(),
        "eventType": payload.event_type.strip(),
        "eventDate": payload.event_date,
        "eventTime": payload.event_time,
        "guestCount": payload.guest_count,
        "specialRequests": (payload.special_requests or "").strip(),
        "status": "pending",
        "createdAt": timestamp,
        "updatedAt": timestamp,
    }
    duplicate = any(
        existing.get("email") == booking["email"]
        and existing.get("eventDate") == booking["eventDate"]
        and existing.get("eventTime") == booking["eventTime"]
        and existing.get("status") != "cancelled"
        for existing in bookings
    )
    if duplicate:
        raise HTTPException(status_code=409, detail="a booking with the same email, date, and time already exists")
    bookings.append(booking)
    data["stats"] = booking_stats(bookings)
    content.write(BOOKINGS_FILE, data)
    logger.info("event booking %s created", booking["id"])
    return {
        "success": True,
        "message": "Event booking submitted successfully! We will contact you soon.",
        "booking": {key: booking[key] for key in ("id", "name", "eventDate", "eventTime", "guestCount", "status")},
        "stats": data["stats"],
    }


@app.get("/api/roles-permissions", tags=["Staff"])
def get_roles_permissions(content: JsonFileStore = Depends(get_content_store)) -> dict:
    data = content.read(ROLES_FILE)
    if data is None:
        raise HTTPException(status_code=404, detail="roles and permissions file not found")
    return data


@app.put("/api/roles-permissions", tags=["Staff"])
def update_roles_permissions(
    payload: dict[str, Any] = Body(...), content: JsonFileStore = Depends(get_content_store)
) -> dict:
    if not isinstance(payload.get("roles"), list) or not isinstance(payload.get("permissions"), list):
        raise HTTPException(status_code=400, detail="roles and permissions must be lists")
    data = content.write(ROLES_FILE, payload)
    return {"success": True, "message": "Roles and permissions updated successfully", "lastUpdated": data["lastUpdated"]}


@app.post("/api/save-credentials", tags=["Staff"])
def save_credentials(payload: dict[str, Any] = Body(...), files: JsonFileStore = Depends(get_data_store)) -> dict:
    users = payload.get("users")
    if not isinstance(users, list):
        raise HTTPException(status_code=400, detail="invalid data format")
    files.write(CREDENTIALS_FILE, {"users": users}, stamp=False, indent=4)
    return {"message": "Credentials saved successfully"}


@app.get("/api/load-credentials", tags=["Staff"])
def load_credentials(files: JsonFileStore = Depends(get_data_store)) -> dict:
    data = files.read(CREDENTIALS_FILE)
    if data is None:
        raise HTTPException(status_code=404, detail="credentials file not found")
    return data


@app.post("/api/auth/login", tags=["Auth"])
def login(
    payload: LoginRequest,
    files: JsonFileStore = Depends(get_data_store),
    config: Settings = Depends(get_settings),
) -> dict:
    if not payload.username or not payload.password:
        raise HTTPException(status_code=400, detail="username and password are required")
    users = files.read(CREDENTIALS_FILE, default={"users": []}).get("users", [])
    user = authenticate(users, payload.username, payload.password)
    logger.info("staff member %s signed in", user["username"])
    return {
        "success": True,
        "token": issue_token(config.secret_key, user),
        "role": user.get("role"),
        "username": user["username"],
        "name": user.get("name"),
    }


@app.post("/api/auth/verify", tags=["Auth"])
def verify(payload: TokenRequest, config: Settings = Depends(get_settings)) -> dict:
    if not payload.token:
        raise HTTPException(status_code=400, detail="token is required")
    claims = verify_token(config.secret_key, payload.token, config.token_max_age_seconds)
    if claims is None:
        raise HTTPException(status_code=401, detail="invalid or expired token")
    return {"valid": True, "username": claims["username"], "role": claims.get("role")}


def _customer_or_404(profile):
    if profile is None:
        raise HTTPException(status_code=404, detail="customer not found")
    return profile.to_dict()


@app.post("/api/customers", tags=["Customers"])
def create_customer(payload: CustomerProfileCreate, store: DocumentStore = Depends(get_document_store)) -> dict:
    profile, created = customer_service.ensure_customer_profile(
        store,
        payload.uid,
        email=payload.email,
        display_name=payload.display_name,
        phone_number=payload.phone_number,
        photo_url=payload.photo_url,
    )
    return {"data": {"customer": profile.to_dict(), "created": created}, "meta": _meta()}


@app.get("/api/customers/{uid}", tags=["Customers"])
def get_customer(uid: str, store: DocumentStore = Depends(get_document_store)) -> dict:
    return {"data": _customer_or_404(customer_service.get_customer_profile(store, uid)), "meta": _meta()}


@app.put("/api/customers/{uid}", tags=["Customers"])
def update_customer(
    uid: str, payload: CustomerProfileUpdate, store: DocumentStore = Depends(get_document_store)
) -> dict:
    fields = payload.model_dump(by_alias=True, exclude_none=True)
    profile = customer_service.update_customer_profile(store, uid, fields)
    return {"data": _customer_or_404(profile), "meta": _meta()}


@app.post("/api/customers/{uid}/addresses", tags=["Customers"])
def add_customer_address(
    uid: str, payload: CustomerAddress, store: DocumentStore = Depends(get_document_store)
) -> dict:
    return {"data": _customer_or_404(customer_service.add_address(store, uid, payload)), "meta": _meta()}


@app.put("/api/customers/{uid}/addresses/{address_id}", tags=["Customers"])
def update_customer_address(
    uid: str,
    address_id: str,
    payload: CustomerAddressUpdate,
    store: DocumentStore = Depends(get_document_store),
) -> dict:
    if customer_service.get_customer_profile(store, uid) is None:
        raise HTTPException(status_code=404, detail="customer not found")
    fields = payload.model_dump(by_alias=True, exclude_none=True)
    profile = customer_service.update_address(store, uid, address_id, fields)
    if profile is None:
        raise HTTPException(status_code=404, detail="address not found")
    return {"data": profile.to_dict(), "meta": _meta()}


@app.delete("/api/customers/{uid}/addresses/{address_id}", tags=["Customers"])
def delete_customer_address(uid: str, address_id: str, store: DocumentStore = Depends(get_document_store)) -> dict:
    return {"data": _customer_or_404(customer_service.remove_address(store, uid, address_id)), "meta": _meta()}


@app.post("/api/customers/{uid}/orders", tags=["Customers"])
def place_customer_order(
    uid: str,
    order: dict[str, Any] = Body(...),
    store: DocumentStore = Depends(get_document_store),
) -> dict:
    if customer_service.get_customer_profile(store, uid) is None:
        raise HTTPException(status_code=404, detail="customer not found")
    snapshot = customer_service.create_customer_order(store, uid, order)
    return {"data": snapshot.to_dict(), "meta": _meta()}


@app.get("/api/customers/{uid}/orders", tags=["Customers"])
def list_customer_orders(uid: str, store: DocumentStore = Depends(get_document_store)) -> dict:
    orders = customer_service.list_customer_orders(store, uid)
    return {"data": [snapshot.to_dict() for snapshot in orders], "meta": _meta()}


@app.get("/api/firestore-migration", tags=["Migration"])
def firestore_migration_status(
    action: Optional[str] = Query(default=None),
    store: DocumentStore = Depends(get_document_store),
    config: Settings = Depends(get_settings),
) -> dict:
    if action == "verify":
        collections = verify_collections(store)
        found = sum(1 for collection in collections if collection["exists"])
        return {
            "data": {"success": True, "collections": collections, "message": f"Found {found} collections with data"},
            "meta": _meta(),
        }
    if action == "backup":
        path = backup_collections(store, config.backup_dir)
        return {
            "data": {
                "success": path is not None,
                "path": str(path) if path else None,
                "message": "Backup created successfully" if path else "Backup failed",
            },
            "meta": _meta(),
        }
    raise HTTPException(status_code=400, detail="invalid action, use ?action=verify or ?action=backup")


@app.post("/api/firestore-migration", tags=["Migration"])
def run_firestore_migration(
    payload: MigrationRequest,
    store: DocumentStore = Depends(get_document_store),
    files: JsonFileStore = Depends(get_data_store),
    config: Settings = Depends(get_settings),
) -> dict:
    if payload.action not in ("migrate", "force-migrate"):
        raise HTTPException(
            status_code=400, detail="invalid action, use action=migrate or action=force-migrate in the body"
        )
    warnings = []
    if payload.action == "migrate" and payload.options.create_backup:
        if backup_collections(store, config.backup_dir) is None:
            warnings.append("backup before migration failed")

    result = migrate_all(
        store,
        files,
        lambda: read_tree(
            config.realtime_database_url, config.realtime_database_secret, config.realtime_export_path
        ),
        ledger=CheckpointLedger(store.db),
        chunk_size=config.migration_batch_size,
        resume=payload.options.resume,
    )
    if payload.action == "migrate" and not result.success:
        raise HTTPException(status_code=500, detail=result.error)
    data = result.to_json()
    if payload.action == "migrate":
        data["verification"] = verify_collections(store)
    return {"data": data, "meta": _meta(warnings=warnings)}


@app.get("/api/order-migration/report", tags=["Migration"])
def order_migration_report(
    store: DocumentStore = Depends(get_document_store),
    files: JsonFileStore = Depends(get_data_store),
) -> dict:
    return {"data": generate_migration_report(store, load_legacy_orders(files)), "meta": _meta()}


@app.post("/api/order-migration", tags=["Migration"])
def run_order_migration(
    options: Optional[MigrationOptions] = Body(default=None),
    store: DocumentStore = Depends(get_document_store),
    files: JsonFileStore = Depends(get_data_store),
    config: Settings = Depends(get_settings),
) -> dict:
    options = options or MigrationOptions()
    stats = migrate_all_legacy_orders(
        store,
        load_legacy_orders(files),
        delay=config.order_migration_delay_seconds,
        ledger=CheckpointLedger(store.db),
        resume=options.resume,
    )
    return {"data": stats, "meta": _meta()}
