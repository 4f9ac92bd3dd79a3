# tests/test_api.py
BUCKET = "/api/routes/go1/lines/1/timetable/weekday"


def test_health(client):
    assert client.get("/api/health").json() == {"status": "ok"}


def test_unknown_route_and_calendar_are_404(client):
    assert client.get("/api/routes/go9").status_code == 404
    assert client.get("/api/routes/go1/lines/4").status_code == 404
    assert client.get("/api/routes/go1/lines/1/timetable/someday/8").status_code == 404


def test_line_settings(client, memory_store):
    body = {"line_name": "Chuo Line", "depart_station": "Mitaka", "arrive_station": "Shinjuku", "ride_time": 18}
    res = client.put("/api/routes/go1/lines/1", json=body)
    assert res.status_code == 200
    assert res.json()["line_name"] == "Chuo Line"
    assert memory_store.data["go1linename1"] == "Chuo Line"

    summary = client.get("/api/routes/go1").json()
    assert summary["line_names"][0] == "Chuo Line"
    assert summary["departure_point"] == "Home"


def test_transfer_settings(client, memory_store):
    res = client.put("/api/routes/back1/transfers/0", json={"transportation": "Bus", "transfer_time": 7})
    assert res.status_code == 200
    assert memory_store.data["back1transfertimee"] == 7
    assert client.get("/api/routes/back1/transfers/4").status_code == 404


def test_entry_crud(client):
    res = client.post(f"{BUCKET}/8", json={"departure": 15, "ride_time": 20, "train_type": "Local"})
    assert res.status_code == 200
    client.post(f"{BUCKET}/8", json={"departure": 10, "ride_time": 18, "train_type": "Rapid"})

    entries = client.get(f"{BUCKET}/8").json()["entries"]
    assert [(e["departure"], e["ride_time"], e["train_type"]) for e in entries] == [
        (10, 18, "Rapid"),
        (15, 20, "Local"),
    ]
    assert entries[0]["color"] == "#FFD400"

    res = client.delete(f"{BUCKET}/8/10")
    assert [e["departure"] for e in res.json()["entries"]] == [15]


def test_invalid_entries_are_422(client):
    assert client.post(f"{BUCKET}/8", json={"departure": 60, "ride_time": 20}).status_code == 422
    assert client.post(f"{BUCKET}/8", json={"departure": 5, "ride_time": -1}).status_code == 422
    assert client.post(f"{BUCKET}/3", json={"departure": 5, "ride_time": 1}).status_code == 422
    res = client.post(f"{BUCKET}/8", json={"departure": 5, "ride_time": 1, "train_type": "Special Rapid"})
    assert res.status_code == 422


def test_hours_and_train_types(client):
    client.post(f"{BUCKET}/6", json={"departure": 0, "ride_time": 20, "train_type": "Rapid"})
    client.post(f"{BUCKET}/9", json={"departure": 30, "ride_time": 20, "train_type": "Local"})

    hours = client.get(BUCKET).json()["hours"]
    assert hours == [
        {"hour": 6, "count": 1},
        {"hour": 7, "count": 0},
        {"hour": 8, "count": 0},
        {"hour": 9, "count": 1},
    ]

    train_types = client.get(f"{BUCKET}/train-types").json()["train_types"]
    assert [t["name"] for t in train_types] == ["Local", "Rapid"]


def test_raw_calendar_identifier_in_path(client, memory_store):
    res = client.post(
        "/api/routes/go1/lines/1/timetable/odpt.Calendar:SaturdayHoliday/10",
        json={"departure": 5, "ride_time": 10},
    )
    assert res.status_code == 200
    assert memory_store.data["go1linename1weekend10"] == "05"


def test_copy(client, memory_store):
    client.post(f"{BUCKET}/8", json={"departure": 10, "ride_time": 18})
    client.post(f"{BUCKET}/9", json={"departure": 30, "ride_time": 25})

    sources = client.get(f"{BUCKET}/9/copy-sources").json()["sources"]
    assert sources[0] == {"index": 0, "label": "8:00-", "enabled": True}

    res = client.post(f"{BUCKET}/9/copy", json={"source_index": 0})
    assert res.status_code == 200
    assert res.json()["copied"] == "10"
    assert memory_store.data["go1linename1weekday09ridetime"] == "25"

    assert client.post(f"{BUCKET}/25/copy", json={"source_index": 1}).status_code == 422


def test_import_and_clear(client, memory_store):
    payload = {
        "calendars": {
            "odpt.Calendar:Weekday": [
                {"departure_time": "07:05", "arrival_time": "07:25", "train_type": "odpt.TrainType:JR-East.Local"},
            ],
            "weekend": [{"departure_time": "08:00", "ride_time": 30}],
        }
    }
    res = client.post("/api/routes/go2/lines/2/import", json=payload)
    assert res.json()["imported"] == 2

    calendars = client.get("/api/routes/go2/lines/2/calendars").json()["calendars"]
    assert [c["tag"] for c in calendars] == ["weekday", "weekend"]

    assert client.delete("/api/routes/go2/lines/2/timetable").status_code == 200
    assert not any(key.startswith("go2linename2") for key in memory_store.data)


def test_resolve_calendar(client):
    res = client.get("/api/calendar/resolve", params={"date": "2025-01-22", "available": "weekday,weekend"})
    assert res.json()["tag"] == "weekday"
    res = client.get("/api/calendar/resolve", params={"date": "2025-01-26", "available": "weekday,weekend"})
    assert res.json()["tag"] == "weekend"
    res = client.get("/api/calendar/resolve", params={"date": "2025-01-26", "available": "bogus"})
    assert res.status_code == 422


def test_train_type(client):
    res = client.get("/api/train-types/odpt.TrainType:JR-East.ChuoSpecialRapid")
    assert res.json()["color"] == "#F58220"
    assert client.get("/api/train-types/Mystery").json()["priority"] == 999


def test_plan(client):
    client.post(f"{BUCKET}/8", json={"departure": 10, "ride_time": 18})
    res = client.get("/api/routes/go1/plan", params={"at": "2025-01-22T08:00:00+09:00"})
    body = res.json()
    assert body["display_times"][2] == "08:10"
    assert body["countdown"] == "10:00"
    assert body["countdown_state"] == "normal"
    assert body["countdown_color"] == "#03DAC5"


def test_plan_converts_utc_to_local_time(client):
    client.post(f"{BUCKET}/8", json={"departure": 40, "ride_time": 18})
    # 2025-01-21 23:30 UTC は 2025-01-22 08:30 JST
    body = client.get("/api/routes/go1/plan", params={"at": "2025-01-21T23:30:00+00:00"}).json()
    assert body["current_time"] == 83000
    assert body["service_date"] == "2025-01-22"
    assert body["display_times"][2] == "08:40"
    assert body["countdown"] == "10:00"
