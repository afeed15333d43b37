"""Tests for template rendering and pre-write validation."""

import json

import pytest

from obs_deploy.errors import TemplateValidationFailed
from obs_deploy.profile import ProfileDocument, verify_profile
from obs_deploy.scene import SceneCollection, verify_scene
from obs_deploy.templates import (
    PROFILE_TEMPLATE, SCENE_TEMPLATE, check_placeholders, check_profile_structure,
    check_scene_structure, json_escape, load_template, placeholders, render_artifacts,
)

from conftest import make_config


class TestBundledTemplates:
    def test_render_is_valid(self):
        cfg = make_config()
        profile_text, scene_text = render_artifacts(cfg, "Gaming", "Gaming")
        assert verify_profile(profile_text, cfg) == []
        assert verify_scene(scene_text, cfg) == []

    def test_no_placeholders_left(self):
        profile_text, scene_text = render_artifacts(make_config(), "Gaming", "Gaming")
        assert placeholders(profile_text) == set()
        assert placeholders(scene_text) == set()

    def test_device_path_backslashes_escaped_in_json(self):
        cfg = make_config()
        _, scene_text = render_artifacts(cfg, "Gaming", "Gaming")
        collection = SceneCollection.parse(scene_text)
        assert collection.capture_sources[0].monitor_id == cfg.monitor_device_id

    def test_fresh_unique_ids(self):
        _, first = render_artifacts(make_config(), "A", "A")
        _, second = render_artifacts(make_config(), "A", "A")
        capture_a = SceneCollection.parse(first).capture_sources[0]
        capture_b = SceneCollection.parse(second).capture_sources[0]
        assert capture_a.uuid and capture_a.uuid != capture_b.uuid

    def test_capture_item_links_to_source(self):
        _, scene_text = render_artifacts(make_config(), "A", "A")
        collection = SceneCollection.parse(scene_text)
        scene = collection.active_scene()
        assert len(scene.items_for(collection.capture_sources[0])) == 1

    def test_names_with_quotes(self):
        _, scene_text = render_artifacts(make_config(), 'My "Best" Profile', 'My "Best"')
        assert json.loads(scene_text)["name"] == 'My "Best"'

    def test_newline_in_path_cannot_inject_keys(self):
        cfg = make_config(output_path="C:\\rec\n[Evil]\nKey=1")
        profile_text, _ = render_artifacts(cfg, "A", "A")
        assert "Evil" not in ProfileDocument.parse(profile_text).section_names

    def test_empty_monitor_id(self):
        cfg = make_config(monitor_device_id=None)
        _, scene_text = render_artifacts(cfg, "A", "A")
        assert SceneCollection.parse(scene_text).capture_sources[0].monitor_id == ""


class TestValidationFailures:
    def test_missing_required_placeholder(self):
        template = load_template(PROFILE_TEMPLATE).replace("{{VIDEO_BITRATE}}", "2500")
        with pytest.raises(TemplateValidationFailed) as exc:
            render_artifacts(make_config(), "A", "A", profile_template=template)
        assert "VIDEO_BITRATE" in str(exc.value)
        assert exc.value.template == PROFILE_TEMPLATE

    def test_unknown_placeholder(self):
        template = load_template(SCENE_TEMPLATE).replace('"Fade"', '"{{TRANSITION}}"')
        with pytest.raises(TemplateValidationFailed) as exc:
            render_artifacts(make_config(), "A", "A", scene_template=template)
        assert "unknown placeholders: TRANSITION" in exc.value.problems

    def test_broken_profile_structure(self):
        template = load_template(PROFILE_TEMPLATE) + "\nthis is not a key\n"
        with pytest.raises(TemplateValidationFailed) as exc:
            render_artifacts(make_config(), "A", "A", profile_template=template)
        assert any("neither a section" in p for p in exc.value.problems)

    def test_scene_not_json(self):
        template = load_template(SCENE_TEMPLATE).rstrip().rstrip("}")
        with pytest.raises(TemplateValidationFailed) as exc:
            render_artifacts(make_config(), "A", "A", scene_template=template)
        assert exc.value.template == SCENE_TEMPLATE

    def test_two_capture_sources(self):
        template = json.dumps({
            "name": "{{COLLECTION_NAME}}",
            "sources": [
                {"name": "Scene", "uuid": "{{SCENE_UUID}}", "id": "scene",
                 "settings": {"items": [], "w": "{{BASE_WIDTH}}", "h": "{{BASE_HEIGHT}}"}},
                {"name": "A", "uuid": "{{CAPTURE_UUID}}", "id": "monitor_capture",
                 "settings": {"monitor_id": "{{MONITOR_DEVICE_ID}}"}},
                {"name": "B", "uuid": "{{DESKTOP_AUDIO_UUID}}", "id": "monitor_capture"},
                {"name": "Mic", "uuid": "{{MIC_AUDIO_UUID}}", "id": "wasapi_input_capture"},
            ],
        })
        with pytest.raises(TemplateValidationFailed) as exc:
            render_artifacts(make_config(), "A", "A", scene_template=template)
        assert any("display capture" in p for p in exc.value.problems)


class TestChecks:
    def test_check_placeholders(self):
        problems = check_placeholders("{{A}} {{C}}", {"A", "B"}, {"A": "1", "B": "2"})
        assert problems == ["missing placeholders: B", "unknown placeholders: C"]

    def test_profile_key_before_section(self):
        assert check_profile_structure("Key=1\n[S]\n") == ["line 1 appears before any [section]"]

    def test_profile_without_sections(self):
        assert "no [section] headers" in check_profile_structure("")

    def test_comments_allowed(self):
        assert check_profile_structure("; note\n[S]\n# other\nK=V\n") == []

    def test_scene_needs_one_scene(self):
        problems = check_scene_structure(json.dumps({"sources": []}))
        assert "expected exactly one scene, found 0" in problems

    def test_json_escape(self):
        assert json_escape('a\\b"c') == 'a\\\\b\\"c'
