"""
Тести для модуля config

Запуск: pytest tests/test_config.py -v
"""

import pytest


def test_defaults():
    """Тест значень за замовчуванням"""
    from dx_reasoning.config import CalibrationMethod, get_default_config

    config = get_default_config()

    assert config.quality.min_quality_score == 40.0
    assert config.ranker.rare_prevalence_threshold == 1e-4
    assert config.ranker.rare_inclusion_floor == 15.0
    assert config.ranker.tie_band == 10.0
    assert config.ranker.minimum_size == 10
    assert config.pipeline.deadline_seconds == 30.0
    assert config.admission.capacity == 1000
    assert config.retrieval.timeout_seconds == 4.0
    assert config.confidence.calibration_method == CalibrationMethod.TEMPERATURE

    print(f"✓ Defaults: tie_band={config.ranker.tie_band}, T_q={config.quality.min_quality_score}")


def test_yaml_roundtrip(tmp_path):
    """Тест збереження та завантаження YAML"""
    from dx_reasoning.config import CalibrationMethod, DxConfig, load_config, save_config

    config = DxConfig()
    config.ranker.tie_band = 7.5
    config.confidence.calibration_method = CalibrationMethod.PLATT
    config.confidence.strategy_weights["frequency"] = 2.0

    path = tmp_path / "config" / "dx.yaml"
    save_config(config, str(path))
    loaded = load_config(str(path))

    assert loaded.ranker.tie_band == 7.5
    assert loaded.confidence.calibration_method == CalibrationMethod.PLATT
    assert loaded.confidence.strategy_weights["frequency"] == 2.0
    assert loaded == config

    print(f"✓ YAML roundtrip: {path.name}")


def test_unknown_keys_rejected():
    """Тест: одруківка в ключі не ігнорується"""
    from dx_reasoning.config import DxConfig

    with pytest.raises(ValueError):
        DxConfig.from_dict({"ranker": {"tie_bnd": 5}})

    with pytest.raises(ValueError):
        DxConfig.from_dict({"rankr": {}})

    print("✓ Unknown keys rejected")


def test_from_dict_partial():
    """Тест: відсутні ключі беруть значення за замовчуванням"""
    from dx_reasoning.config import CalibrationMethod, DxConfig

    config = DxConfig.from_dict({
        "confidence": {"calibration_method": "identity"},
        "quality": {"min_quality_score": 55},
    })

    assert config.confidence.calibration_method == CalibrationMethod.IDENTITY
    assert config.quality.min_quality_score == 55
    assert config.ranker.tie_band == 10.0

    print("✓ Partial dict merged with defaults")


def test_from_env(monkeypatch):
    """Тест перевизначення з environment"""
    from dx_reasoning.config import DxConfig

    monkeypatch.setenv("DX_SNAPSHOT_PATH", "/data/snapshot.json")
    monkeypatch.setenv("DX_LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("DX_DEADLINE_SECONDS", "12.5")
    monkeypatch.setenv("DX_RETRIEVAL_ENABLED", "true")

    config = DxConfig.from_env()

    assert config.snapshot_path == "/data/snapshot.json"
    assert config.logging.level == "DEBUG"
    assert config.pipeline.deadline_seconds == 12.5
    assert config.retrieval.enabled is True

    print("✓ Environment overrides applied")
