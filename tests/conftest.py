import pytest

from sleeplog.db import configure_backend


@pytest.fixture(autouse=True)
def _isolated_backend(monkeypatch, tmp_path):
    monkeypatch.setenv("SLEEPLOG_BACKEND", "memory")
    monkeypatch.setenv("SLEEPLOG_DB", str(tmp_path / "sleeplog.db"))
    monkeypatch.setenv("SLEEPLOG_TIMEZONE", "UTC")
    monkeypatch.delenv("SLEEPLOG_DEFAULT_USER", raising=False)
    configure_backend(None)
    yield
    configure_backend(None)
