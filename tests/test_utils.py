"""Tests for shared helpers and application settings."""

import os

import pytest

from obs_deploy.config import AppSettings, EncoderProfile, advanced_encoder_id, get_obs_config_dir
from obs_deploy.utils import atomic_write_text, parse_resolution, read_text, sanitize_name


class TestParseResolution:
    @pytest.mark.parametrize("text,expected", [
        ("1920x1080", (1920, 1080)),
        ("2560X1440", (2560, 1440)),
        (" 3440 x 1440 ", (3440, 1440)),
        ("1280×720", (1280, 720)),
        ("800*600", (800, 600)),
    ])
    def test_valid(self, text, expected):
        assert parse_resolution(text) == expected

    @pytest.mark.parametrize("text", ["", "1920", "1920x", "x1080", "1920x1080x2", "0x0", "abcxdef", None])
    def test_invalid(self, text):
        assert parse_resolution(text) is None


class TestSanitizeName:
    def test_replaces_forbidden(self):
        assert sanitize_name('Gaming: "1440p"/main') == "Gaming_ _1440p__main"

    def test_empty_becomes_untitled(self):
        assert sanitize_name("   ") == "Untitled"

    def test_truncates(self):
        assert len(sanitize_name("a" * 300)) == 100


class TestAtomicWrite:
    def test_creates_directories(self, tmp_path):
        target = tmp_path / "a" / "b" / "file.ini"
        atomic_write_text(str(target), "[Video]\n")
        assert read_text(str(target)) == "[Video]\n"

    def test_replaces_and_leaves_no_temp(self, tmp_path):
        target = tmp_path / "file.ini"
        target.write_text("old", encoding="utf-8")
        atomic_write_text(str(target), "new")
        assert target.read_text(encoding="utf-8") == "new"
        assert os.listdir(tmp_path) == ["file.ini"]

    def test_failure_keeps_original(self, tmp_path, monkeypatch):
        target = tmp_path / "file.ini"
        target.write_text("old", encoding="utf-8")

        def boom(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr(os, "replace", boom)
        with pytest.raises(OSError):
            atomic_write_text(str(target), "new")
        assert target.read_text(encoding="utf-8") == "old"
        assert os.listdir(tmp_path) == ["file.ini"]


class TestEncoderIds:
    def test_known(self):
        assert advanced_encoder_id("x264") == "obs_x264"
        assert EncoderProfile("qsv").advanced_id == "obs_qsv11"

    def test_unknown_lists_known(self):
        with pytest.raises(KeyError) as exc:
            advanced_encoder_id("av1")
        assert "nvenc" in str(exc.value)

    def test_label(self):
        assert EncoderProfile("nvenc", is_gpu=True).label == "nvenc (GPU)"


class TestAppSettings:
    def test_paths(self, tmp_path):
        settings = AppSettings(obs_config_dir=str(tmp_path), profile_name="Rec", scene_collection="Desk")
        assert settings.profile_path == os.path.join(str(tmp_path), "basic", "profiles", "Rec", "basic.ini")
        assert settings.scene_path == os.path.join(str(tmp_path), "basic", "scenes", "Desk.json")

    def test_default_config_root_uses_appdata(self, monkeypatch, tmp_path):
        monkeypatch.setenv("APPDATA", str(tmp_path))
        assert get_obs_config_dir() == os.path.join(str(tmp_path), "obs-studio")
        assert AppSettings().config_root == os.path.join(str(tmp_path), "obs-studio")

    def test_recording_path_default(self):
        assert AppSettings().recording_path.endswith("Videos")
        assert AppSettings(output_path="D:\\rec").recording_path == "D:\\rec"
