from datetime import date

from calendar_view import CalendarViewMode, build_view, has_notes, month_grid, note_dates

NOTES = [
    {"id": "1", "date": "2024-10-05", "note": "Talk"},
    {"id": "2", "date": "2024-10-05", "note": "Dinner"},
    {"id": "3", "date": "2024-12-25", "note": "Holiday"},
]
TODAY = date(2024, 10, 19)


def _day(grid, number):
    return next(d for d in grid["days"] if d["day"] == number)


def test_has_notes_predicate():
    dates = note_dates(NOTES)
    assert has_notes(date(2024, 10, 5), dates)
    assert not has_notes(date(2024, 10, 6), dates)


def test_indicator_in_year_view():
    view = build_view(CalendarViewMode.year, date(2024, 1, 1), NOTES, today=TODAY)
    assert view["view"] == "year"
    assert len(view["months"]) == 12
    october, december = view["months"][9], view["months"][11]
    assert _day(october, 5)["has_notes"]
    assert not _day(october, 6)["has_notes"]
    assert _day(december, 25)["has_notes"]
    assert october["is_current_month"] and not december["is_current_month"]


def test_indicator_in_month_view():
    view = build_view(CalendarViewMode.month, date(2024, 10, 1), NOTES, today=TODAY)
    assert view["view"] == "month"
    flagged = [d["day"] for d in view["days"] if d["has_notes"]]
    assert flagged == [5]
    assert _day(view, 19)["is_today"]


def test_indicator_in_day_view():
    with_notes = build_view(CalendarViewMode.day, date(2024, 10, 5), NOTES, today=TODAY)
    assert with_notes["has_notes"]
    assert [n["note"] for n in with_notes["notes"]] == ["Talk", "Dinner"]

    empty = build_view(CalendarViewMode.day, date(2024, 10, 6), NOTES, today=TODAY)
    assert not empty["has_notes"]
    assert empty["notes"] == []


def test_weeks_start_on_sunday():
    # 2024-09-01 is a Sunday, 2024-10-01 a Tuesday
    assert month_grid(2024, 9, set(), TODAY)["leading_blanks"] == 0
    assert month_grid(2024, 10, set(), TODAY)["leading_blanks"] == 2
    assert len(month_grid(2024, 2, set(), TODAY)["days"]) == 29


def test_calendar_note_crud(client, admin_headers):
    resp = client.post("/api/calendar-notes", json={"date": "2024-10-05", "note": "Talk"}, headers=admin_headers)
    assert resp.status_code == 201
    note = resp.json()
    assert note["date"] == "2024-10-05"

    client.post("/api/calendar-notes", json={"date": "2024-11-01", "note": "Trip"}, headers=admin_headers)

    assert [n["note"] for n in client.get("/api/calendar-notes", params={"date": "2024-10-05"}).json()] == ["Talk"]
    assert len(client.get("/api/calendar-notes", params={"year": 2024}).json()) == 2
    assert len(client.get("/api/calendar-notes", params={"year": 2024, "month": 11}).json()) == 1

    resp = client.put(f"/api/calendar-notes/{note['id']}", json={"date": "2024-10-06"}, headers=admin_headers)
    assert resp.json()["date"] == "2024-10-06"
    assert resp.json()["note"] == "Talk"

    assert client.get("/api/calendar-notes/has-notes", params={"date": "2024-10-05"}).json()["has_notes"] is False
    assert client.get("/api/calendar-notes/has-notes", params={"date": "2024-10-06"}).json()["has_notes"] is True

    assert client.delete(f"/api/calendar-notes/{note['id']}", headers=admin_headers).status_code == 200
    assert client.get("/api/calendar-notes", params={"date": "2024-10-06"}).json() == []


def test_calendar_note_writes_need_admin(client):
    resp = client.post("/api/calendar-notes", json={"date": "2024-10-05", "note": "Talk"})
    assert resp.status_code == 401


def test_calendar_views_over_http(client, admin_headers):
    client.post("/api/calendar-notes", json={"date": "2024-10-05", "note": "Talk"}, headers=admin_headers)

    month = client.get("/api/calendar", params={"view": "month", "date": "2024-10-01"}).json()
    assert [d["day"] for d in month["days"] if d["has_notes"]] == [5]

    year = client.get("/api/calendar", params={"view": "year", "date": "2024-03-01"}).json()
    assert _day(year["months"][9], 5)["has_notes"]

    day = client.get("/api/calendar", params={"view": "day", "date": "2024-10-05"}).json()
    assert day["has_notes"]
    assert client.get("/api/calendar", params={"view": "week"}).status_code == 422


def test_calendar_changes_are_published(client, admin_headers, published):
    note = client.post("/api/calendar-notes", json={"date": "2024-10-05", "note": "Talk"}, headers=admin_headers).json()
    client.put(f"/api/calendar-notes/{note['id']}", json={"note": "Keynote"}, headers=admin_headers)
    client.delete(f"/api/calendar-notes/{note['id']}", headers=admin_headers)

    assert [(e["table"], e["eventType"]) for e in published] == [
        ("calendar_notes", "INSERT"),
        ("calendar_notes", "UPDATE"),
        ("calendar_notes", "DELETE"),
    ]
    assert published[0]["new"]["id"] == note["id"]
    assert published[1]["new"]["note"] == "Keynote"
    assert published[2]["old"] == {"id": note["id"]}


def test_month_filter_needs_year(client):
    resp = client.get("/api/calendar-notes", params={"month": 10})
    assert resp.status_code == 422
    assert resp.json()["detail"] == "month requires year"
