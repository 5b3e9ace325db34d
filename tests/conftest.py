# tests/conftest.py
from __future__ import annotations

"""
Pytest configuration for the jyotish engine suite.

- Registers Hypothesis profiles for local dev and CI.
- Freezes the process TZ to UTC (we always pass IANA zones explicitly).
- Sanity-checks ERFA availability and basic tzdata presence.
- Provides the Flask test client and a shared analytic ephemeris adapter.
"""

import os
import pytest
from hypothesis import settings, HealthCheck


# ──────────────────────────────────────────────────────────────────────────────
# Hypothesis profiles
# ──────────────────────────────────────────────────────────────────────────────
settings.register_profile(
    "dev",
    settings(
        deadline=None,
        max_examples=60,
        suppress_health_check=[HealthCheck.too_slow],
    ),
)
settings.register_profile(
    "ci",
    settings(
        deadline=None,
        max_examples=120,
        suppress_health_check=[HealthCheck.too_slow],
    ),
)

_profile = (
    "ci"
    if (os.getenv("CI") or os.getenv("GITHUB_ACTIONS"))
    else os.getenv("HYPOTHESIS_PROFILE", "dev")
)
settings.load_profile(_profile)


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "slow: mark test as slow")
    config.addinivalue_line("filterwarnings", "ignore::DeprecationWarning")


def pytest_report_header(config: pytest.Config) -> str:
    return f"Hypothesis profile: '{_profile}'"


# ──────────────────────────────────────────────────────────────────────────────
# Global fixtures
# ──────────────────────────────────────────────────────────────────────────────

@pytest.fixture(scope="session", autouse=True)
def freeze_tz_env():
    prev = os.environ.get("TZ")
    os.environ["TZ"] = "UTC"
    try:
        yield
    finally:
        if prev is None:
            os.environ.pop("TZ", None)
        else:
            os.environ["TZ"] = prev


@pytest.fixture(scope="session")
def ensure_erfa():
    """Fail early if pyERFA is missing the calls the time and angle layers use."""
    import erfa
    for fn in ("cal2jd", "jd2cal", "dat", "gst06a", "obl06", "nut06a"):
        assert hasattr(erfa, fn), f"ERFA.{fn} not available"
    from erfa import ufunc
    assert hasattr(ufunc, "dat"), "ERFA ufunc.dat not available"
    return erfa


@pytest.fixture(scope="session")
def ensure_tzdata():
    """Core IANA zones must resolve (install 'tzdata' on bare runners)."""
    from zoneinfo import ZoneInfo
    for name in ("UTC", "Asia/Kolkata", "America/New_York"):
        ZoneInfo(name)


@pytest.fixture(scope="session")
def analytic_adapter():
    from jyotish.core.ephemeris_adapter import Config, EphemerisAdapter
    return EphemerisAdapter(Config(provider="analytic", node_model="mean", allow_fallback=True))


@pytest.fixture(scope="session")
def engine_cfg():
    from jyotish.utils.config import EngineConfig
    return EngineConfig(transit_workers=2)


@pytest.fixture()
def client(ensure_tzdata):
    from jyotish.main import create_app
    app = create_app({})
    app.testing = True
    return app.test_client()
