import pytest

from inbounds_arrays import settings


@pytest.fixture(autouse=True)
def _isolated_capability_mode(monkeypatch: pytest.MonkeyPatch, tmp_path):
    monkeypatch.setenv(settings.PREFERENCES_ENV, str(tmp_path / "preferences.json"))
    monkeypatch.delenv(settings.MODE_ENV, raising=False)
    monkeypatch.delenv(settings.STRICT_ENV, raising=False)
    previous = settings.get_capability_mode()
    yield
    settings.set_capability_mode(previous, persist=False)
