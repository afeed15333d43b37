"""Tests for writing and verifying OBS artifacts on disk."""

import json
import os

import pytest

from obs_deploy.errors import DeployError, TemplateValidationFailed
from obs_deploy.profile import ProfileDocument
from obs_deploy.synthesizer import ConfigurationSynthesizer

from conftest import make_config


@pytest.fixture
def paths(tmp_path):
    profile = tmp_path / "basic" / "profiles" / "Test" / "basic.ini"
    scene = tmp_path / "basic" / "scenes" / "Test.json"
    return str(profile), str(scene)


@pytest.fixture
def synth(paths):
    messages = []
    synthesizer = ConfigurationSynthesizer(*paths, on_log=messages.append)
    synthesizer.messages = messages
    return synthesizer


class TestPatch:
    def test_creates_missing_files(self, synth, paths):
        report = synth.patch(make_config(), "Test")
        assert report.strategy == "patch"
        assert report.created_capture
        assert report.verified
        assert all(os.path.isfile(p) for p in paths)

    def test_second_run_is_clean(self, synth, paths):
        cfg = make_config()
        synth.patch(cfg, "Test")
        with open(paths[1], encoding="utf-8") as fh:
            first_scene = fh.read()

        report = synth.patch(cfg, "Test")
        assert report.mismatches == []
        assert not report.created_capture
        with open(paths[1], encoding="utf-8") as fh:
            data = json.load(fh)
        captures = [s for s in data["sources"] if s["id"] == "monitor_capture"]
        assert len(captures) == 1
        with open(paths[1], encoding="utf-8") as fh:
            assert fh.read() == first_scene

    def test_preserves_existing_profile_keys(self, synth, paths):
        os.makedirs(os.path.dirname(paths[0]))
        with open(paths[0], "w", encoding="utf-8") as fh:
            fh.write("[General]\nName=Test\n\n[Video]\nBaseCX=800\nScaleType=lanczos\n")
        synth.patch(make_config(), "Test")
        with open(paths[0], encoding="utf-8") as fh:
            doc = ProfileDocument.parse(fh.read())
        assert doc.get("General", "Name") == "Test"
        assert doc.get("Video", "ScaleType") == "lanczos"
        assert doc.get("Video", "BaseCX") == "1920"

    def test_reads_profile_with_bom(self, synth, paths):
        os.makedirs(os.path.dirname(paths[0]))
        with open(paths[0], "w", encoding="utf-8-sig") as fh:
            fh.write("[Video]\nBaseCX=800\n")
        report = synth.patch(make_config(), "Test")
        assert report.verified
        with open(paths[0], encoding="utf-8") as fh:
            assert fh.read().startswith("[Video]")

    def test_invalid_scene_json_aborts_before_writing(self, synth, paths):
        os.makedirs(os.path.dirname(paths[1]))
        with open(paths[1], "w", encoding="utf-8") as fh:
            fh.write("{not json")
        with pytest.raises(DeployError) as exc:
            synth.patch(make_config(), "Test")
        assert "template mode" in str(exc.value)
        assert not os.path.exists(paths[0])
        with open(paths[1], encoding="utf-8") as fh:
            assert fh.read() == "{not json"

    def test_logs_progress(self, synth):
        synth.patch(make_config(), "Test")
        assert any("Profile patched" in m for m in synth.messages)
        assert synth.messages[-1].strip().endswith("Verification passed")


class TestCreate:
    def test_writes_both_artifacts(self, synth, paths):
        report = synth.create(make_config(), "Test", "Test")
        assert report.strategy == "template"
        assert report.verified
        with open(paths[1], encoding="utf-8") as fh:
            assert json.load(fh)["name"] == "Test"

    def test_overwrites_existing(self, synth, paths):
        os.makedirs(os.path.dirname(paths[0]))
        with open(paths[0], "w", encoding="utf-8") as fh:
            fh.write("[Custom]\nKeep=maybe\n")
        synth.create(make_config(), "Test", "Test")
        with open(paths[0], encoding="utf-8") as fh:
            assert "[Custom]" not in fh.read()

    def test_invalid_template_writes_nothing(self, synth, paths):
        with pytest.raises(TemplateValidationFailed):
            synth.create(make_config(), "Test", "Test", profile_template="[Video]\nBaseCX=1\n")
        assert not any(os.path.exists(p) for p in paths)

    def test_then_patch_is_clean(self, synth):
        cfg = make_config()
        synth.create(cfg, "Test", "Test")
        assert synth.patch(cfg, "Test").verified


class TestVerify:
    def test_missing_files(self, synth):
        mismatches = synth.verify(make_config())
        assert [m.field for m in mismatches] == ["file", "file"]

    def test_reports_manual_edit(self, synth, paths):
        cfg = make_config()
        synth.patch(cfg, "Test")
        with open(paths[0], encoding="utf-8") as fh:
            text = fh.read()
        with open(paths[0], "w", encoding="utf-8") as fh:
            fh.write(text.replace("VBitrate=3437", "VBitrate=1000"))
        mismatches = synth.verify(cfg)
        assert [str(m) for m in mismatches] == [
            "profile:SimpleOutput.VBitrate expected '3437', found '1000'",
        ]
        # reported, never reverted
        with open(paths[0], encoding="utf-8") as fh:
            assert "VBitrate=1000" in fh.read()
