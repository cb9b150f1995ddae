import logging
import os
from contextlib import asynccontextmanager
from datetime import date
from typing import Any, Callable, Dict, Optional, Type

from fastapi import Body, Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse, StreamingResponse
from pydantic import BaseModel, ValidationError
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import PyMongoError

import database
import lookups
from auth import (
    COOKIE_NAME,
    AuthError,
    authenticate,
    check_admin,
    end_session,
    ensure_admin_user,
    get_current_admin,
    get_current_session,
    get_token,
    has_role,
    open_session,
)
from calendar_view import CalendarViewMode, build_view, has_notes, note_dates
from database import DatabaseUnavailable
from gallery import viewer_frame
from icons import icon_for_app
from realtime import REALTIME_TABLES, ChangeType, change_feed, event_stream
from schemas import (
    SETTINGS_MODELS,
    AboutContent,
    AppItem,
    CalendarNote,
    CaseStudyApp,
    ContactSettings,
    EducationItem,
    GithubProject,
    InfoAppSettings,
    Note,
    Photo,
    SocialLinks,
    Video,
    WorkExperience,
)
from sun import sun_times

logger = logging.getLogger("portfolio")

SSE_KEEPALIVE_SECONDS = 15


# ==================
# FastAPI app config
# ==================
@asynccontextmanager
async def lifespan(_: FastAPI):
    if database.db is not None:
        try:
            database.collection("app_settings").create_index("key", unique=True)
            database.collection("users").create_index("email", unique=True)
            database.collection("calendar_notes").create_index("date")
            database.collection("sessions").create_index("expires_at", expireAfterSeconds=0)
            ensure_admin_user()
        except PyMongoError as exc:
            logger.error("Database setup failed: %s", exc)
    yield


app = FastAPI(title="Phone-OS Portfolio API", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(DatabaseUnavailable)
def database_unavailable(_: Request, exc: DatabaseUnavailable):
    logger.error("No database configured (collection %s)", exc)
    return JSONResponse(status_code=500, content={"detail": "Database not available"})


@app.exception_handler(PyMongoError)
def database_error(_: Request, exc: PyMongoError):
    logger.error("Database error: %s", exc)
    return JSONResponse(status_code=500, content={"detail": "Database error"})


# ============
# Request DTOs
# ============
class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class LoginRequest(BaseModel):
    email: str
    password: str


class NoteIn(BaseModel):
    content: str = ""
    author_name: Optional[str] = None


# =========
# Utilities
# =========

def read_or_default(reader: Callable[[], Any], default: Any, what: str) -> Any:
    """Reads never fail the viewer; fall back to the documented default."""
    try:
        return reader()
    except (DatabaseUnavailable, PyMongoError) as exc:
        logger.error("Error loading %s: %s", what, exc)
        return default


def validate(model: Type[BaseModel], data: Dict[str, Any]) -> BaseModel:
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=exc.errors(include_url=False, include_context=False))


def load_or_404(collection_name: str, item_id: str) -> Dict[str, Any]:
    try:
        item = database.get_document(collection_name, item_id)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid id")
    if not item:
        raise HTTPException(status_code=404, detail="Not found")
    return item


def merge_update(collection_name: str, model: Type[BaseModel], item_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
    existing = load_or_404(collection_name, item_id)
    merged = validate(model, {**existing, **changes})
    updated = database.update_document(collection_name, item_id, merged)
    if not updated:
        raise HTTPException(status_code=404, detail="Not found")
    return updated


def remove_or_404(collection_name: str, item_id: str) -> Dict[str, Any]:
    try:
        removed = database.delete_document(collection_name, item_id)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid id")
    if not removed:
        raise HTTPException(status_code=404, detail="Not found")
    return removed


def load_single(collection_name: str, model: Type[BaseModel]) -> Dict[str, Any]:
    defaults = model().model_dump(mode="json")

    def reader():
        row = database.find_one(collection_name, {})
        if not row:
            return defaults
        try:
            return {**model.model_validate(row).model_dump(mode="json"), "id": row["id"]}
        except ValidationError as exc:
            logger.error("Stored %s row is invalid, using defaults: %s", collection_name, exc)
            return defaults

    return read_or_default(reader, defaults, collection_name)


def load_setting(key: str) -> Dict[str, Any]:
    model = SETTINGS_MODELS.get(key)
    if model is None:
        raise HTTPException(status_code=404, detail="Unknown setting")
    stored = read_or_default(lambda: database.get_setting(key), None, f"setting {key}")
    if not isinstance(stored, dict):
        return model().model_dump(mode="json")
    try:
        return model.model_validate({**model().model_dump(), **stored}).model_dump(mode="json")
    except ValidationError as exc:
        logger.error("Stored setting %s is invalid, using defaults: %s", key, exc)
        return model().model_dump(mode="json")


# ======
# Health
# ======
@app.get("/")
def root():
    return {"status": "ok", "service": "phone-os-portfolio-api"}


@app.get("/test")
def test_database():
    ok = database.db is not None
    collections = []
    if ok:
        try:
            collections = database.db.list_collection_names()
        except PyMongoError as exc:
            logger.warning("Listing collections failed: %s", exc)
            ok = False
    return {"backend": "running", "database": "connected" if ok else "not-available", "collections": collections[:10]}


# ====
# Auth
# ====
@app.post("/api/auth/login", response_model=Token)
def login(data: LoginRequest):
    user = authenticate(data.email, data.password)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    token = open_session(user)
    response = JSONResponse(Token(access_token=token).model_dump())
    response.set_cookie(COOKIE_NAME, token, httponly=True, samesite="lax")
    return response


@app.post("/api/auth/logout")
def logout(current: dict = Depends(get_current_session)):
    end_session(current["session_id"])
    response = JSONResponse({"ok": True})
    response.delete_cookie(COOKIE_NAME)
    return response


@app.get("/api/auth/session")
def session_info(current: dict = Depends(get_current_session)):
    return {"user": current["user"], "is_admin": has_role(current["user"]["id"])}


@app.get("/admin")
def admin_login_page():
    return {"page": "admin-login", "login": "/api/auth/login"}


ADMIN_SECTIONS = [
    "about", "apps", "case-studies", "photos", "videos", "github-projects",
    "work-experience", "education", "notes", "calendar-notes", "contact",
    "social-links", "info-app", *SETTINGS_MODELS.keys(),
]


@app.get("/admin/dashboard")
def admin_dashboard(token: Optional[str] = Depends(get_token)):
    try:
        current = check_admin(token)
    except (DatabaseUnavailable, PyMongoError) as exc:
        logger.error("Admin check failed: %s", exc)
        return RedirectResponse("/admin", status_code=303)
    except AuthError as exc:
        response = RedirectResponse("/admin", status_code=303)
        if exc.signed_out:
            response.delete_cookie(COOKIE_NAME)
        return response
    return {"user": current["user"], "sections": ADMIN_SECTIONS}


# =======================
# Single-row content rows
# =======================

def register_single(path: str, collection_name: str, model: Type[BaseModel]) -> None:
    def read_row():
        return load_single(collection_name, model)

    def write_row(data: Dict[str, Any] = Body(...), _: dict = Depends(get_current_admin)):
        return database.upsert_single(collection_name, validate(model, data))

    app.add_api_route(f"/api/{path}", read_row, methods=["GET"], name=f"get_{collection_name}")
    app.add_api_route(f"/api/{path}", write_row, methods=["PUT"], name=f"put_{collection_name}")


register_single("about", "about_content", AboutContent)
register_single("contact", "contact_settings", ContactSettings)
register_single("social-links", "social_links", SocialLinks)
register_single("info-app", "info_app_settings", InfoAppSettings)


# ========
# Settings
# ========
@app.get("/api/settings/{key}")
def get_setting(key: str):
    return load_setting(key)


@app.put("/api/settings/{key}")
def put_setting(key: str, data: Dict[str, Any] = Body(...), _: dict = Depends(get_current_admin)):
    model = SETTINGS_MODELS.get(key)
    if model is None:
        raise HTTPException(status_code=404, detail="Unknown setting")
    value = validate(model, data).model_dump(mode="json")
    database.upsert_setting(key, value)
    return value


@app.get("/api/seo")
def seo():
    return load_setting("site_seo")


# ============
# Photo viewer
# ============
@app.get("/api/photos/viewer")
def photo_viewer(index: int = 0):
    photos = read_or_default(
        lambda: database.get_documents("photos", {"is_visible": True}, sort=[("sort_order", ASCENDING), ("_id", ASCENDING)]),
        [],
        "photos",
    )
    if not photos:
        raise HTTPException(status_code=404, detail="No photos")
    return viewer_frame(photos, index)


# =============
# Ordered lists
# =============

def with_app_icon(item: Dict[str, Any]) -> Dict[str, Any]:
    return {**item, "icon": icon_for_app(item.get("name", "")).value}


def register_list(
    path: str,
    collection_name: str,
    model: Type[BaseModel],
    filterable: tuple = (),
    decorate: Optional[Callable[[Dict[str, Any]], Dict[str, Any]]] = None,
) -> None:
    order = [("sort_order", ASCENDING), ("_id", ASCENDING)]

    def list_visible(request: Request):
        query: Dict[str, Any] = {"is_visible": True}
        for field in filterable:
            if field in request.query_params:
                query[field] = request.query_params[field]
        items = read_or_default(lambda: database.get_documents(collection_name, query, sort=order), [], collection_name)
        return [decorate(i) for i in items] if decorate else items

    def list_all(_: dict = Depends(get_current_admin)):
        return database.get_documents(collection_name, sort=order)

    def create_item(data: Dict[str, Any] = Body(...), _: dict = Depends(get_current_admin)):
        if "sort_order" not in data:
            data = {**data, "sort_order": database.count_documents(collection_name)}
        return database.create_document(collection_name, validate(model, data))

    def update_item(item_id: str, data: Dict[str, Any] = Body(...), _: dict = Depends(get_current_admin)):
        return merge_update(collection_name, model, item_id, data)

    def delete_item(item_id: str, _: dict = Depends(get_current_admin)):
        remove_or_404(collection_name, item_id)
        return {"deleted": True}

    app.add_api_route(f"/api/{path}", list_visible, methods=["GET"], name=f"list_{collection_name}")
    app.add_api_route(f"/api/admin/{path}", list_all, methods=["GET"], name=f"admin_list_{collection_name}")
    app.add_api_route(f"/api/{path}", create_item, methods=["POST"], name=f"create_{collection_name}")
    app.add_api_route(f"/api/{path}/{{item_id}}", update_item, methods=["PUT"], name=f"update_{collection_name}")
    app.add_api_route(f"/api/{path}/{{item_id}}", delete_item, methods=["DELETE"], name=f"delete_{collection_name}")


register_list("apps", "app_items", AppItem)
register_list("case-studies", "case_study_apps", CaseStudyApp, decorate=with_app_icon)
register_list("photos", "photos", Photo)
register_list("videos", "videos", Video)
register_list("github-projects", "github_projects", GithubProject)
register_list("work-experience", "work_experience", WorkExperience)
register_list("education", "education_items", EducationItem, filterable=("category",))


# ===========
# Home screen
# ===========
@app.get("/api/home")
def home():
    apps = read_or_default(
        lambda: database.get_documents("app_items", {"is_visible": True}, sort=[("sort_order", ASCENDING)]),
        [],
        "app_items",
    )
    return {
        "apps": [a for a in apps if not a.get("is_dock_item")],
        "dock": [a for a in apps if a.get("is_dock_item")],
        "boot": load_setting("boot"),
        "welcome": load_setting("welcome"),
        "welcome_notification": load_setting("welcome_notification"),
        "background": load_setting("background"),
    }


# ============
# Public notes
# ============
@app.get("/api/notes")
def list_notes():
    return read_or_default(
        lambda: database.get_documents("notes", sort=[("created_at", DESCENDING), ("_id", DESCENDING)]),
        [],
        "notes",
    )


@app.post("/api/notes", status_code=201)
def add_note(data: NoteIn):
    try:
        note = Note(content=data.content, author_name=data.author_name)
    except ValidationError:
        raise HTTPException(status_code=400, detail="Please enter a note")
    created = database.create_document("notes", note)
    change_feed.publish("notes", ChangeType.INSERT, new=created)
    return created


@app.put("/api/notes/{note_id}")
def edit_note(note_id: str, data: Dict[str, Any] = Body(...), _: dict = Depends(get_current_admin)):
    updated = merge_update("notes", Note, note_id, data)
    change_feed.publish("notes", ChangeType.UPDATE, new=updated)
    return updated


@app.delete("/api/notes/{note_id}")
def delete_note(note_id: str, _: dict = Depends(get_current_admin)):
    removed = remove_or_404("notes", note_id)
    change_feed.publish("notes", ChangeType.DELETE, old={"id": removed["id"]})
    return {"deleted": True}


# ==============
# Calendar notes
# ==============
@app.get("/api/calendar-notes")
def list_calendar_notes(
    day: Optional[date] = Query(None, alias="date"),
    year: Optional[int] = None,
    month: Optional[int] = Query(None, ge=1, le=12),
):
    query: Dict[str, Any] = {}
    if month and not year:
        raise HTTPException(status_code=422, detail="month requires year")
    if day:
        query["date"] = day.isoformat()
    elif year and month:
        query["date"] = {"$regex": f"^{year:04d}-{month:02d}-"}
    elif year:
        query["date"] = {"$regex": f"^{year:04d}-"}
    return read_or_default(
        lambda: database.get_documents("calendar_notes", query, sort=[("date", ASCENDING), ("created_at", ASCENDING)]),
        [],
        "calendar_notes",
    )


@app.get("/api/calendar-notes/has-notes")
def calendar_has_notes(day: date = Query(..., alias="date")):
    notes = read_or_default(
        lambda: database.get_documents("calendar_notes", {"date": day.isoformat()}, limit=1), [], "calendar_notes"
    )
    return {"date": day.isoformat(), "has_notes": has_notes(day, note_dates(notes))}


@app.post("/api/calendar-notes", status_code=201)
def add_calendar_note(note: CalendarNote, _: dict = Depends(get_current_admin)):
    created = database.create_document("calendar_notes", note)
    change_feed.publish("calendar_notes", ChangeType.INSERT, new=created)
    return created


@app.put("/api/calendar-notes/{note_id}")
def edit_calendar_note(note_id: str, data: Dict[str, Any] = Body(...), _: dict = Depends(get_current_admin)):
    updated = merge_update("calendar_notes", CalendarNote, note_id, data)
    change_feed.publish("calendar_notes", ChangeType.UPDATE, new=updated)
    return updated


@app.delete("/api/calendar-notes/{note_id}")
def delete_calendar_note(note_id: str, _: dict = Depends(get_current_admin)):
    removed = remove_or_404("calendar_notes", note_id)
    change_feed.publish("calendar_notes", ChangeType.DELETE, old={"id": removed["id"]})
    return {"deleted": True}


@app.get("/api/calendar")
def calendar(view: CalendarViewMode = CalendarViewMode.month, day: Optional[date] = Query(None, alias="date")):
    anchor = day or date.today()
    if view == CalendarViewMode.year:
        prefix = f"^{anchor.year:04d}-"
    elif view == CalendarViewMode.month:
        prefix = f"^{anchor.year:04d}-{anchor.month:02d}-"
    else:
        prefix = f"^{anchor.isoformat()}$"
    notes = read_or_default(
        lambda: database.get_documents("calendar_notes", {"date": {"$regex": prefix}}, sort=[("created_at", ASCENDING)]),
        [],
        "calendar_notes",
    )
    return build_view(view, anchor, notes)


# ========
# Realtime
# ========
@app.get("/api/realtime/{table}")
async def realtime(table: str, request: Request):
    """Server-sent events stream of changes to one realtime table."""
    if table not in REALTIME_TABLES:
        raise HTTPException(status_code=404, detail="Not a realtime table")
    frames = event_stream(change_feed, table, request.is_disconnected, keepalive=SSE_KEEPALIVE_SECONDS)
    return StreamingResponse(frames, media_type="text/event-stream")


# ==========================
# Weather, network, location
# ==========================
@app.get("/api/weather")
def weather(lat: float = Query(..., ge=-90, le=90), lon: float = Query(..., ge=-180, le=180)):
    try:
        return {"current": lookups.current_weather(lat, lon), "forecast": lookups.forecast(lat, lon)}
    except (lookups.LookupFailed, KeyError, IndexError, ValueError) as exc:
        logger.error("Weather lookup failed: %s", exc)
        raise HTTPException(status_code=502, detail="Unable to fetch weather data")


@app.get("/api/weather/uv")
def weather_uv(lat: float = Query(..., ge=-90, le=90), lon: float = Query(..., ge=-180, le=180)):
    try:
        return lookups.uv_index(lat, lon)
    except lookups.LookupFailed as exc:
        logger.error("UV lookup failed: %s", exc)
        raise HTTPException(status_code=502, detail="Unable to fetch UV index")


@app.get("/api/ip")
def ip_address():
    return {"ip": lookups.public_ip()}


@app.get("/api/geocode")
def geocode(lat: float = Query(..., ge=-90, le=90), lon: float = Query(..., ge=-180, le=180)):
    return lookups.reverse_geocode(lat, lon)


@app.get("/api/control-centre")
def control_centre(lat: Optional[float] = Query(None, ge=-90, le=90), lon: Optional[float] = Query(None, ge=-180, le=180)):
    location = "Location unavailable"
    if lat is not None and lon is not None:
        location = lookups.reverse_geocode(lat, lon)["label"]
    return {"ip": lookups.public_ip(), "location": location, "config": load_setting("control_centre")}


@app.get("/api/clock")
def clock(lat: float = Query(..., ge=-90, le=90), lon: float = Query(..., ge=-180, le=180), day: Optional[date] = Query(None, alias="date")):
    sunrise, sunset = sun_times(lat, lon, day or date.today())
    return {"location": lookups.reverse_geocode(lat, lon), "sunrise": sunrise, "sunset": sunset}


if __name__ == "__main__":
    import uvicorn

    log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
