# tests/test_config.py
import pytest

from jyotish.utils.config import EngineConfig, engine_config_from, load_config


def test_yaml_and_env_overrides(tmp_path, monkeypatch):
    path = tmp_path / "cfg.yaml"
    path.write_text("engine:\n  house_system: placidus\ntransits:\n  workers: 0\n", encoding="utf-8")
    monkeypatch.setenv("JYOTISH_AYANAMSA", "fagan_bradley")
    monkeypatch.setenv("JYOTISH_ALLOW_FALLBACK", "no")
    cfg = load_config(str(path))
    assert cfg.engine.house_system == "placidus"
    eng = engine_config_from(cfg)
    assert eng.ayanamsa == "fagan_bradley"
    assert eng.allow_fallback is False
    assert eng.transit_workers == 1
    assert eng.dasha_depth == EngineConfig().dasha_depth


def test_missing_file_gives_defaults(tmp_path):
    assert engine_config_from(load_config(str(tmp_path / "absent.yaml"))) == EngineConfig()


def test_bad_env_value(tmp_path, monkeypatch):
    monkeypatch.setenv("JYOTISH_DASHA_DEPTH", "three")
    with pytest.raises(ValueError):
        load_config(str(tmp_path / "absent.yaml"))


def test_overrides_skip_none():
    base = EngineConfig()
    assert base.with_overrides(house_system=None, ayanamsa="krishnamurti").house_system == base.house_system
    assert base.to_dict()["ayanamsa"] == "lahiri"
