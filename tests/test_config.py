from __future__ import annotations

import logging
import os
from pathlib import Path

import pytest

from clipframe.config import Settings, load_settings
from clipframe.logging_config import configure_logging


def _clear_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in list(os.environ):
        if key.startswith("CLIPFRAME_"):
            monkeypatch.delenv(key, raising=False)


def test_load_settings_defaults_when_file_missing(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _clear_env(monkeypatch)

    settings = load_settings(tmp_path / "missing.yaml")

    assert settings == Settings()
    assert settings.segmentation.max_segments == 12
    assert settings.framing.margin == pytest.approx(0.12)
    assert settings.weights.hook == pytest.approx(0.24)


def test_load_settings_reads_yaml_sections(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _clear_env(monkeypatch)
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        "segmentation:\n  max_segments: 5\n  locale: es\nframing:\n  max_pan_px_per_second: 400\n",
        encoding="utf-8",
    )

    settings = load_settings(config_path)

    assert settings.segmentation.max_segments == 5
    assert settings.segmentation.locale == "es"
    assert settings.framing.max_pan_px_per_second == pytest.approx(400.0)
    assert settings.duration.short_max_seconds == pytest.approx(32.0)


def test_load_settings_applies_env_overrides(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _clear_env(monkeypatch)
    monkeypatch.setenv("CLIPFRAME_FRAMING__MARGIN", "0.2")
    monkeypatch.setenv("CLIPFRAME_SEGMENTATION__MAX_SEGMENTS", "3")
    monkeypatch.setenv("CLIPFRAME_LOGGING__LOGGERS", '{"clipframe.framing": "DEBUG"}')
    monkeypatch.setenv("CLIPFRAME_PIPELINE__OUTPUT_DIR", str(tmp_path / "out"))
    monkeypatch.setenv("CLIPFRAME_UNKNOWN__KEY", "ignored")

    settings = load_settings(tmp_path / "missing.yaml")

    assert settings.framing.margin == pytest.approx(0.2)
    assert settings.segmentation.max_segments == 3
    assert settings.logging.loggers == {"clipframe.framing": "DEBUG"}
    assert settings.pipeline.output_dir == tmp_path / "out"


def test_load_settings_rejects_non_mapping_yaml(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _clear_env(monkeypatch)
    config_path = tmp_path / "config.yaml"
    config_path.write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ValueError, match="must contain a mapping"):
        load_settings(config_path)


def test_configure_logging_sets_per_logger_levels(tmp_path: Path) -> None:
    settings = Settings.model_validate(
        {"logging": {"level": "WARNING", "file": str(tmp_path / "logs" / "run.log"), "loggers": {"clipframe.framing": "DEBUG"}}}
    )

    configure_logging(settings.logging)

    assert logging.getLogger().level == logging.WARNING
    assert logging.getLogger("clipframe.framing").level == logging.DEBUG
    assert (tmp_path / "logs").is_dir()

    logging.getLogger("clipframe.framing").setLevel(logging.NOTSET)
