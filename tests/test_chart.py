# tests/test_chart.py
from __future__ import annotations

from datetime import date
from zoneinfo import ZoneInfo

import pytest

from jyotish.core.chart import compute_chart, natal_points
from jyotish.core.constants import GRAHAS, wrap_deg
from jyotish.core.errors import GeometryDegenerate, InvalidTimeInput
from jyotish.core.validate import BirthInput

DELHI_1990 = BirthInput(date(1990, 1, 1), "10:00", ZoneInfo("Asia/Kolkata"), 28.61, 77.20)


@pytest.fixture(scope="module")
def chart(engine_cfg, analytic_adapter):
    return compute_chart(DELHI_1990, engine_cfg, adapter=analytic_adapter)


def test_instant_and_ayanamsa(chart) -> None:
    assert chart.instant.utc_iso == "1990-01-01T04:30:00Z"
    assert chart.ayanamsa_model == "lahiri"
    assert 23.6 < chart.ayanamsa < 23.8


def test_all_grahas_placed(chart) -> None:
    assert [p.name for p in chart.planets] == list(GRAHAS)
    for p in chart.planets:
        assert 0.0 <= p.longitude < 360.0
        assert 0 <= p.nakshatra_index <= 26
        assert 1 <= p.house <= 12
        assert p.source == "analytic"
    assert chart.planet("Ketu").longitude == wrap_deg(chart.planet("Rahu").longitude + 180.0)
    with pytest.raises(KeyError):
        chart.planet("Pluto")


def test_sun_in_sagittarius(chart) -> None:
    sun = chart.planet("Sun")
    assert sun.sign == "Sagittarius"
    assert sun.nakshatra == "Purva Ashadha"


def test_dasha_starts_at_birth_from_moon(chart) -> None:
    assert chart.dasha is not None
    md = chart.dasha[0]
    assert md.start == chart.instant.utc
    assert md.lord == chart.planet("Moon").nakshatra_lord
    assert len(md.children) == 9
    assert chart.errors == ()


def test_to_dict_shape(chart) -> None:
    d = chart.to_dict()
    assert d["birth"] == {"date": "1990-01-01", "time": "10:00", "tz": "Asia/Kolkata", "lat": 28.61, "lon": 77.20}
    assert d["ascendant"]["sign"] == chart.houses.ascendant_sign
    assert len(d["houses"]["cusps"]) == 12
    assert d["houses"]["system"] == "whole_sign"
    assert d["dasha"][0]["startISO"] == "1990-01-01T04:30:00Z"
    assert "children" in d["dasha"][0]
    assert d["errors"] == []


def test_natal_points_include_ascendant(chart) -> None:
    pts = natal_points(chart)
    assert set(pts) == set(GRAHAS) | {"Ascendant"}
    assert pts["Ascendant"] == chart.houses.ascendant


def test_house_system_override(engine_cfg, analytic_adapter) -> None:
    cfg = engine_cfg.with_overrides(house_system="placidus")
    ch = compute_chart(DELHI_1990, cfg, adapter=analytic_adapter)
    assert ch.houses.system == "placidus"
    assert ch.houses.cusps[0] == pytest.approx(ch.houses.ascendant, abs=1e-6)


def test_pole_rejected(engine_cfg, analytic_adapter) -> None:
    birth = BirthInput(date(1990, 1, 1), "10:00", ZoneInfo("UTC"), 90.0, 0.0)
    with pytest.raises(GeometryDegenerate):
        compute_chart(birth, engine_cfg, adapter=analytic_adapter)


def test_bad_clock_time_rejected(engine_cfg, analytic_adapter) -> None:
    birth = BirthInput(date(1990, 1, 1), "25:00", ZoneInfo("UTC"), 10.0, 0.0)
    with pytest.raises(InvalidTimeInput):
        compute_chart(birth, engine_cfg, adapter=analytic_adapter)


def test_unresolvable_moon_keeps_rest_of_chart(engine_cfg, analytic_adapter, monkeypatch) -> None:
    import jyotish.core.chart as chart_mod
    from jyotish.core.errors import InvalidNakshatraIndex

    def boom(*a, **kw):
        raise InvalidNakshatraIndex("moon", "Moon longitude is not finite")

    monkeypatch.setattr(chart_mod, "build_ladder", boom)
    ch = compute_chart(DELHI_1990, engine_cfg, adapter=analytic_adapter)
    assert ch.dasha is None
    assert ch.errors == ({"subsystem": "dasha", "message": "Moon longitude is not finite"},)
    assert len(ch.planets) == len(GRAHAS)
    assert ch.to_dict()["dasha"] is None
