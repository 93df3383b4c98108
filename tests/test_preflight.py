"""Tests for launch-time preflight checks."""

import pytest

from journeymap.preflight import run_preflight, run_preflight_or_die


@pytest.fixture(autouse=True)
def _data_dir(tmp_path, monkeypatch):
    monkeypatch.setenv("JOURNEYMAP_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.delenv("JOURNEYMAP_SKIP_PREFLIGHT", raising=False)


class TestPreflight:
    def test_skip_env(self, monkeypatch):
        monkeypatch.setenv("JOURNEYMAP_SKIP_PREFLIGHT", "1")
        monkeypatch.delenv("DISPLAY", raising=False)
        monkeypatch.delenv("WAYLAND_DISPLAY", raising=False)
        assert run_preflight().ok

    def test_no_display(self, monkeypatch):
        monkeypatch.delenv("DISPLAY", raising=False)
        monkeypatch.delenv("WAYLAND_DISPLAY", raising=False)
        result = run_preflight()
        assert not result.ok
        assert "graphical session" in result.message

    def test_display_not_required(self, monkeypatch, tmp_path):
        monkeypatch.delenv("DISPLAY", raising=False)
        monkeypatch.delenv("WAYLAND_DISPLAY", raising=False)
        assert run_preflight(require_display=False, check_deps=False).ok
        assert (tmp_path / "data" / "backups").is_dir()

    def test_unusable_data_dir(self, monkeypatch, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("x", encoding="utf-8")
        monkeypatch.setenv("JOURNEYMAP_DATA_DIR", str(blocker / "data"))
        result = run_preflight(require_display=False, check_deps=False)
        assert not result.ok
        assert "data directory" in result.message

    def test_or_die_exits(self, monkeypatch, capsys):
        monkeypatch.delenv("DISPLAY", raising=False)
        monkeypatch.delenv("WAYLAND_DISPLAY", raising=False)
        with pytest.raises(SystemExit) as excinfo:
            run_preflight_or_die()
        assert excinfo.value.code == 1
        assert "preflight check failed" in capsys.readouterr().err
