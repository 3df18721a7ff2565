"""
Gunicorn process settings.
"""

import runpy
from pathlib import Path

CONFIG = Path(__file__).resolve().parent.parent / "gunicorn.conf.py"


def load_config():
    return {k: v for k, v in runpy.run_path(str(CONFIG)).items() if not k.startswith("_")}


def test_defaults_to_one_uvicorn_worker(monkeypatch):
    monkeypatch.delenv("WEB_CONCURRENCY", raising=False)
    monkeypatch.setenv("PORT", "9100")
    config = load_config()
    assert config["workers"] == 1
    assert config["worker_class"] == "uvicorn.workers.UvicornWorker"
    assert config["bind"] == "0.0.0.0:9100"


def test_only_the_settings_the_service_uses(monkeypatch):
    monkeypatch.setenv("WEB_CONCURRENCY", "3")
    config = load_config()
    assert config["workers"] == 3
    settings = set(config) - {"os", "sys", "current_dir"}
    assert settings == {
        "bind", "workers", "worker_class", "timeout",
        "accesslog", "errorlog", "loglevel", "proc_name", "preload_app",
    }
