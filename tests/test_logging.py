from __future__ import annotations

import logging

import pytest
import structlog

from nodepulse_api import logging as nodepulse_logging


@pytest.fixture
def captured(monkeypatch: pytest.MonkeyPatch) -> dict[str, dict]:
    calls: dict[str, dict] = {}
    monkeypatch.setattr(nodepulse_logging, "_CONFIGURED", False)
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.update(basic=kwargs))
    monkeypatch.setattr(structlog, "configure", lambda **kwargs: calls.update(structlog=kwargs))
    for name in (nodepulse_logging.LOG_LEVEL_ENV, nodepulse_logging.LOG_FORMAT_ENV):
        # Registers the variable with monkeypatch so values set by dotenv are undone.
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    return calls


def test_configure_logging_defaults(
    monkeypatch: pytest.MonkeyPatch, tmp_path, captured: dict[str, dict]
) -> None:
    monkeypatch.chdir(tmp_path)
    nodepulse_logging.configure_logging()
    assert captured["basic"]["level"] == logging.INFO
    renderer = captured["structlog"]["processors"][-1]
    assert isinstance(renderer, structlog.processors.JSONRenderer)


def test_configure_logging_reads_dotenv(
    monkeypatch: pytest.MonkeyPatch, tmp_path, captured: dict[str, dict]
) -> None:
    (tmp_path / ".env").write_text(
        "NODEPULSE_LOG_LEVEL=warning\nNODEPULSE_LOG_FORMAT=console\n", encoding="utf-8"
    )
    monkeypatch.chdir(tmp_path)

    nodepulse_logging.configure_logging()

    assert captured["basic"]["level"] == logging.WARNING
    renderer = captured["structlog"]["processors"][-1]
    assert isinstance(renderer, structlog.dev.ConsoleRenderer)


def test_configure_logging_runs_once(
    monkeypatch: pytest.MonkeyPatch, tmp_path, captured: dict[str, dict]
) -> None:
    monkeypatch.chdir(tmp_path)
    nodepulse_logging.configure_logging()
    captured.clear()
    nodepulse_logging.configure_logging()
    assert captured == {}


def test_configure_logging_rejects_unknown_level(
    monkeypatch: pytest.MonkeyPatch, tmp_path, captured: dict[str, dict]
) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv(nodepulse_logging.LOG_LEVEL_ENV, "chatty")
    with pytest.raises(ValueError, match="NODEPULSE_LOG_LEVEL"):
        nodepulse_logging.configure_logging()
