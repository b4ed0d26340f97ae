# SPDX-License-Identifier: AGPL-3.0-or-later
from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler

from biztracker.logging_setup import setup_logging
from biztracker.settings import Settings


def test_env_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("BIZTRACKER_API_URL", " https://biz.example.com/api/ ")
    monkeypatch.setenv("BIZTRACKER_POLL_INTERVAL_SECONDS", "0.5")
    monkeypatch.setenv("BIZTRACKER_HOME", str(tmp_path / "home"))
    settings = Settings()
    assert settings.api_url == "https://biz.example.com/api"
    assert settings.poll_interval_seconds == 0.5
    assert settings.timeout_seconds == 30
    assert settings.resolve_data_dir() == tmp_path / "home"
    assert (tmp_path / "home").is_dir()


def test_setup_logging_attaches_one_rotating_handler(tmp_path):
    log_path = tmp_path / "logs" / "biztracker.log"
    setup_logging(log_path)
    setup_logging(log_path)
    for name in ("biztracker", "bizcore"):
        handlers = [h for h in logging.getLogger(name).handlers if isinstance(h, RotatingFileHandler)]
        assert len(handlers) == 1
