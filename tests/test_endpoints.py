import base64

sample = {
    "date": "1990-01-01",
    "time": "10:00",
    "tz": "Asia/Kolkata",
    "lat": 28.61,
    "lon": 77.20,
}


def test_health(client):
    for path in ("/health", "/healthz"):
        rv = client.get(path)
        assert rv.status_code == 200
        assert rv.get_json()["status"] == "ok"
    root = client.get("/").get_json()
    assert root["service"] == "jyotish-engine"


def test_chart(client):
    rv = client.post("/api/chart", json=sample)
    assert rv.status_code == 200
    data = rv.get_json()
    assert data["ok"] is True
    assert data["instant"]["utc"] == "1990-01-01T04:30:00Z"
    assert len(data["planets"]) == 9
    assert len(data["houses"]["cusps"]) == 12
    assert data["dasha"][0]["startISO"] == "1990-01-01T04:30:00Z"
    assert rv.headers["X-Request-ID"] == data["request_id"]


def test_chart_nested_birth_and_overrides(client):
    rv = client.post("/api/chart", json={"birth": sample, "houseSystem": "Placidus", "ayanamsa": "kp"})
    assert rv.status_code == 200
    data = rv.get_json()
    assert data["houses"]["system"] == "placidus"
    assert data["ayanamsa"]["model"] == "krishnamurti"


def test_request_id_is_echoed(client):
    rv = client.post("/api/chart", json=sample, headers={"X-Request-ID": "abc-123"})
    assert rv.get_json()["request_id"] == "abc-123"
    assert rv.headers["X-Request-ID"] == "abc-123"


def test_validation_collects_all_fields(client):
    bad = dict(sample, lat=123, tz="Mars/Olympus", time="10h")
    rv = client.post("/api/chart", json=bad)
    assert rv.status_code == 422
    data = rv.get_json()
    assert data["error"] == "validation_error"
    locs = {tuple(e["loc"]) for e in data["errors"]}
    assert locs == {("time",), ("tz",), ("lat",)}


def test_non_object_body(client):
    rv = client.post("/api/chart", data="[1, 2]", content_type="application/json")
    assert rv.status_code == 422


def test_unknown_house_system(client):
    rv = client.post("/api/chart", json=dict(sample, houseSystem="topocentric"))
    assert rv.status_code == 422
    assert rv.get_json()["errors"][0]["loc"] == ["houseSystem"]


def test_pole_is_engine_error(client):
    rv = client.post("/api/chart", json=dict(sample, lat=90.0))
    assert rv.status_code == 422
    data = rv.get_json()
    assert data["ok"] is False
    assert data["subsystem"] == "houses"
    assert data["error"] == "GeometryDegenerate"


def test_nonexistent_calendar_date_is_time_error(client):
    rv = client.post("/api/timescales", json={"date": "2021-02-29", "time": "10:00", "tz": "UTC"})
    assert rv.status_code == 422
    assert rv.get_json()["errors"][0]["loc"] == ["date"]


def test_timescales(client):
    rv = client.post("/api/timescales", json={"date": "2020-11-01", "time": "01:30", "tz": "America/New_York"})
    assert rv.status_code == 200
    data = rv.get_json()
    assert "dst_ambiguous" in data["warnings"]
    ts = data["timescales"]
    assert ts["jd_tt"] > ts["jd_ut"]
    assert ts["timezone"] == "America/New_York"


def test_dasha(client):
    rv = client.post("/api/dasha", json=dict(sample, depth=2, at="2020-06-01T00:00:00Z"))
    assert rv.status_code == 200
    data = rv.get_json()
    assert data["birthUTC"] == "1990-01-01T04:30:00Z"
    assert data["ladder"][0]["level"] == "mahadasha"
    assert [n["level"] for n in data["current"]] == ["mahadasha", "antardasha"]
    assert data["atISO"] == "2020-06-01T00:00:00Z"


def test_dasha_depth_out_of_range(client):
    rv = client.post("/api/dasha", json=dict(sample, depth=5))
    assert rv.status_code == 422


def test_panchang(client):
    rv = client.post("/api/panchang", json=dict(sample, panchangDate="2024-03-10"))
    assert rv.status_code == 200
    data = rv.get_json()
    assert data["date"] == "2024-03-10"
    assert data["weekday"] == "Sunday"
    assert 1 <= data["tithiIndex"] <= 30
    assert data["rahuKaal"] is not None
    assert data["atISO"] == "2024-03-10T04:30:00Z"


def test_transits_with_daily_moon(client):
    rv = client.post("/api/transits", json=dict(sample, start="2024-01-01", horizonDays=3, includeMoon=True))
    assert rv.status_code == 200
    data = rv.get_json()
    assert data["horizonDays"] == 7
    assert len(data["dailyMoon"]) == 7
    for w in data["windows"]:
        assert "2024-01-01" <= w["startISO"] <= w["endISO"] <= "2024-01-07"


def test_transits_include_moon_must_be_bool(client):
    rv = client.post("/api/transits", json=dict(sample, includeMoon="yes"))
    assert rv.status_code == 422


def test_config(client):
    data = client.get("/api/config").get_json()
    assert data["engine"]["house_system"] == "whole_sign"
    assert data["ephemeris"]["provider"] == "analytic"


def test_metrics_requires_auth(client, monkeypatch):
    assert client.get("/metrics").status_code == 401
    monkeypatch.setenv("METRICS_USER", "ops")
    monkeypatch.setenv("METRICS_PASS", "s3cret")
    token = base64.b64encode(b"ops:s3cret").decode()
    rv = client.get("/metrics", headers={"Authorization": f"Basic {token}"})
    assert rv.status_code == 200
    assert b"jyotish_app_up" in rv.data


def test_unknown_route(client):
    rv = client.get("/api/nope")
    assert rv.status_code == 404
    assert rv.get_json()["error"] == "http_error"


def test_zone_directory_name_is_rejected(client):
    rv = client.post("/api/chart", json=dict(sample, tz="America"))
    assert rv.status_code == 422
    assert rv.get_json()["errors"][0]["loc"] == ["tz"]
    rv = client.post("/api/timescales", json={"date": "2020-01-01", "time": "10:00", "tz": "America"})
    assert rv.status_code == 422


def test_infinite_numbers_are_validation_errors(client):
    body = (
        '{"date": "1990-01-01", "time": "10:00", "tz": "Asia/Kolkata",'
        ' "lat": 28.61, "lon": 77.2, "horizonDays": Infinity}'
    )
    rv = client.post("/api/transits", data=body, content_type="application/json")
    assert rv.status_code == 422
    assert rv.get_json()["errors"][0]["loc"] == ["horizonDays"]
    rv = client.post("/api/chart", data=body.replace("horizonDays", "dashaDepth"), content_type="application/json")
    assert rv.status_code == 422
    assert rv.get_json()["errors"][0]["loc"] == ["dashaDepth"]


def test_chart_carries_navamsa_and_dignity(client):
    data = client.post("/api/chart", json=sample).get_json()
    by_name = {p["name"]: p for p in data["planets"]}
    assert by_name["Rahu"]["dignity"] is None
    assert by_name["Sun"]["dignity"] in {"exalted", "debilitated", "own", "friendly", "neutral", "enemy"}
    assert all(p["navamsaSign"] for p in data["planets"])
    assert set(data["vargas"]) == {"D1", "D2", "D3", "D7", "D9", "D10", "D12", "D30"}
    assert data["vargas"]["D9"]["Sun"] == by_name["Sun"]["navamsaSign"]
    assert data["vargas"]["D1"]["Ascendant"] == data["ascendant"]["sign"]
