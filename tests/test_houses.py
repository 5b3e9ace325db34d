# tests/test_houses.py
from __future__ import annotations

import math

import pytest
from hypothesis import given, strategies as st

from jyotish.core.constants import wrap_deg
from jyotish.core.errors import GeometryDegenerate
from jyotish.core.house_systems import HOUSE_SYSTEMS, ascendant_deg, compute_cusps, mc_deg
from jyotish.core.houses import (
    canonicalize_system,
    compute_houses,
    gmst_mean_deg,
    house_of,
    local_angles,
    whole_sign_house,
)

EPS = 23.4392911
JD_UT = 2447892.6875        # 1990-01-01 04:30 UTC
JD_TT = JD_UT + 56.86 / 86400.0


def _spans(cusps):
    return [wrap_deg(cusps[(i + 1) % 12] - cusps[i]) for i in range(12)]


def _lon_for_ramc(jd_ut: float, ramc: float) -> float:
    """Geographic longitude at which the mean local sidereal angle equals ramc."""
    return ((ramc - gmst_mean_deg(jd_ut)) + 180.0) % 360.0 - 180.0

# ─────────────────────────────────────────────────────────────────────────────
# Angles
# ─────────────────────────────────────────────────────────────────────────────

def test_ascendant_on_equator_at_zero_ramc() -> None:
    assert ascendant_deg(0.0, 0.0, EPS) == pytest.approx(90.0, abs=1e-9)
    assert mc_deg(0.0, EPS) == pytest.approx(0.0, abs=1e-9)


def test_mc_at_ramc_90_is_cancer_point() -> None:
    assert mc_deg(90.0, EPS) == pytest.approx(90.0, abs=1e-9)
    assert ascendant_deg(0.0, 90.0, EPS) == pytest.approx(180.0, abs=1e-9)


@given(
    phi=st.floats(min_value=-66.0, max_value=66.0),
    ramc=st.floats(min_value=0.0, max_value=359.999),
)
def test_ascendant_lies_east_of_mc(phi, ramc) -> None:
    asc = ascendant_deg(phi, ramc, EPS)
    mc = mc_deg(ramc, EPS)
    assert 0.0 < wrap_deg(asc - mc) < 180.0


@given(
    phi=st.floats(min_value=-66.0, max_value=66.0),
    ramc=st.floats(min_value=0.0, max_value=359.999),
)
def test_ascendant_is_on_eastern_horizon(phi, ramc) -> None:
    # judged from the local sidereal angle alone, without reference to the MC
    asc = math.radians(ascendant_deg(phi, ramc, EPS))
    eps = math.radians(EPS)
    ra = math.atan2(math.sin(asc) * math.cos(eps), math.cos(asc))
    dec = math.asin(math.sin(eps) * math.sin(asc))
    hour_angle = wrap_deg(ramc - math.degrees(ra))
    assert 180.0 < hour_angle < 360.0
    lat = math.radians(phi)
    alt = math.sin(lat) * math.sin(dec) + math.cos(lat) * math.cos(dec) * math.cos(math.radians(hour_angle))
    assert alt == pytest.approx(0.0, abs=1e-9)


def test_apparent_and_mean_angles_agree_closely(ensure_erfa) -> None:
    mean = local_angles(JD_UT, JD_TT, 28.61, 77.20, "mean")
    app = local_angles(JD_UT, JD_TT, 28.61, 77.20, "apparent")
    assert abs(((app.ramc - mean.ramc) + 180.0) % 360.0 - 180.0) < 0.01
    assert abs(app.obliquity - mean.obliquity) < 0.01
    with pytest.raises(ValueError):
        local_angles(JD_UT, JD_TT, 28.61, 77.20, "topocentric")

# ─────────────────────────────────────────────────────────────────────────────
# Cusps
# ─────────────────────────────────────────────────────────────────────────────

@pytest.mark.parametrize("system", HOUSE_SYSTEMS)
def test_cusps_cover_circle_in_order(system) -> None:
    ramc, phi = 123.4, 28.61
    asc, mc = ascendant_deg(phi, ramc, EPS), mc_deg(ramc, EPS)
    cusps = compute_cusps(system, phi=phi, ramc=ramc, eps=EPS, asc=asc, mc=mc)
    assert len(cusps) == 12
    assert all(0.0 <= c < 360.0 for c in cusps)
    spans = _spans(cusps)
    assert all(s > 0.0 for s in spans)
    assert sum(spans) == pytest.approx(360.0, abs=1e-6)


@pytest.mark.parametrize("system", ["porphyry", "placidus", "koch", "regiomontanus", "campanus"])
def test_quadrant_systems_hold_the_angles(system) -> None:
    ramc, phi = 250.0, 51.5
    asc, mc = ascendant_deg(phi, ramc, EPS), mc_deg(ramc, EPS)
    cusps = compute_cusps(system, phi=phi, ramc=ramc, eps=EPS, asc=asc, mc=mc)
    assert cusps[0] == pytest.approx(asc, abs=1e-6)
    assert cusps[9] == pytest.approx(mc, abs=1e-6)
    assert cusps[6] == pytest.approx(wrap_deg(asc + 180.0), abs=1e-6)


def test_placidus_on_equator_matches_equal_ra_division() -> None:
    # at φ = 0 every semi-arc is 90°, so cusps sit every 30° of right ascension
    ramc = 0.0
    asc, mc = ascendant_deg(0.0, ramc, EPS), mc_deg(ramc, EPS)
    cusps = compute_cusps("placidus", phi=0.0, ramc=ramc, eps=EPS, asc=asc, mc=mc)
    assert cusps[10] == pytest.approx(mc_deg(30.0, EPS), abs=1e-6)
    assert cusps[11] == pytest.approx(mc_deg(60.0, EPS), abs=1e-6)
    assert cusps[1] == pytest.approx(mc_deg(120.0, EPS), abs=1e-6)
    assert cusps[2] == pytest.approx(mc_deg(150.0, EPS), abs=1e-6)


@given(
    phi=st.floats(min_value=-60.0, max_value=60.0),
    ramc=st.floats(min_value=0.0, max_value=359.999),
    system=st.sampled_from(["placidus", "koch", "porphyry", "sripati"]),
)
def test_cusp_order_property(phi, ramc, system) -> None:
    asc, mc = ascendant_deg(phi, ramc, EPS), mc_deg(ramc, EPS)
    spans = _spans(compute_cusps(system, phi=phi, ramc=ramc, eps=EPS, asc=asc, mc=mc))
    assert sum(spans) == pytest.approx(360.0, abs=1e-6)

# ─────────────────────────────────────────────────────────────────────────────
# Placement & policy
# ─────────────────────────────────────────────────────────────────────────────

def test_whole_sign_house_example() -> None:
    assert whole_sign_house(8, 5) == 4
    assert whole_sign_house(5, 5) == 1
    assert whole_sign_house(4, 5) == 12


def test_house_of_cusp_opens_house() -> None:
    cusps = [30.0 * i for i in range(12)]
    assert house_of(30.0, cusps) == 2
    assert house_of(29.999, cusps) == 1
    assert house_of(359.5, cusps) == 12


def test_canonicalize_system_aliases() -> None:
    assert canonicalize_system("Whole Sign") == "whole_sign"
    assert canonicalize_system("bhava-chalit") == "sripati"
    assert canonicalize_system(None) == "whole_sign"
    with pytest.raises(ValueError):
        canonicalize_system("topocentric")


def test_whole_sign_uses_sidereal_sign_boundaries() -> None:
    hp = compute_houses(jd_ut=JD_UT, jd_tt=JD_TT, lat=28.61, lon=77.20, ayanamsa=23.7,
                        planets={"Sun": 256.7, "Moon": 300.1}, system="whole_sign")
    assert hp.cusps[0] == 30.0 * hp.ascendant_sign_index
    assert all(c % 30.0 == 0.0 for c in hp.cusps)
    assert hp.houses["Sun"] == whole_sign_house(8, hp.ascendant_sign_index)
    assert hp.warnings == ()


def test_sidereal_angles_shift_by_ayanamsa() -> None:
    a = compute_houses(jd_ut=JD_UT, jd_tt=JD_TT, lat=28.61, lon=77.20, ayanamsa=0.0, system="equal")
    b = compute_houses(jd_ut=JD_UT, jd_tt=JD_TT, lat=28.61, lon=77.20, ayanamsa=23.7, system="equal")
    assert wrap_deg(a.ascendant - b.ascendant) == pytest.approx(23.7, abs=1e-9)
    assert wrap_deg(a.cusps[4] - b.cusps[4]) == pytest.approx(23.7, abs=1e-9)


@pytest.mark.parametrize("system", ["placidus", "koch"])
def test_high_latitude_falls_back_to_porphyry(system) -> None:
    lon = _lon_for_ramc(JD_UT, 90.0)
    hp = compute_houses(jd_ut=JD_UT, jd_tt=JD_TT, lat=80.0, lon=lon, ayanamsa=0.0, system=system)
    assert hp.system == "porphyry"
    assert hp.requested_system == system
    assert f"house_fallback:{system}->porphyry" in hp.warnings


def test_pole_is_degenerate() -> None:
    with pytest.raises(GeometryDegenerate) as ei:
        compute_houses(jd_ut=JD_UT, jd_tt=JD_TT, lat=90.0, lon=0.0, ayanamsa=0.0)
    assert ei.value.subsystem == "houses"
    with pytest.raises(ValueError):
        compute_houses(jd_ut=JD_UT, jd_tt=JD_TT, lat=91.0, lon=0.0, ayanamsa=0.0)
