"""Tests for display reconciliation: resolution correction and descriptor matching."""

from obs_deploy.identity import parse_device_path
from obs_deploy.models import ControllerResolution
from obs_deploy.reconciler import correct_resolution, match_descriptor, reconcile

from conftest import make_descriptor, make_geometry


class TestCorrectResolution:
    def test_primary_exact_controller_match_kept(self):
        g = make_geometry(width=1920, height=1080, primary=True)
        assert correct_resolution(g, [ControllerResolution(1920, 1080)]) == (1920, 1080)

    def test_primary_dpi_scaled_geometry_is_corrected(self):
        # 1920x1080 at 200% scaling shows up as 960x540
        g = make_geometry(width=960, height=540, primary=True)
        assert correct_resolution(g, []) == (1920, 1080)

    def test_primary_dpi_only_for_small_geometry(self):
        # 1536x960 at 1.25 is 1920x1200, but only sizes below 1280x720 qualify
        g = make_geometry(width=1536, height=960, primary=True)
        assert correct_resolution(g, []) == (1536, 960)

    def test_primary_dpi_175_percent(self):
        g = make_geometry(width=1097, height=617, primary=True)
        assert correct_resolution(g, []) == (1920, 1080)

    def test_primary_dpi_no_standard_match(self):
        g = make_geometry(width=1279, height=719, primary=True)
        assert correct_resolution(g, []) == (1279, 719)
        g = make_geometry(width=1024, height=576, primary=True)
        assert correct_resolution(g, []) == (1024, 576)

    def test_primary_dpi_requires_both_axes_small(self):
        g = make_geometry(width=1280, height=720, primary=True)
        # 1280 is not < 1280, so the heuristic does not apply
        assert correct_resolution(g, []) == (1280, 720)

    def test_primary_ignores_aspect_heuristic(self):
        g = make_geometry(width=1600, height=900, primary=True)
        assert correct_resolution(g, [ControllerResolution(2560, 1440)]) == (1600, 900)

    def test_non_primary_exact_match(self):
        g = make_geometry(index=1, width=2560, height=1440, primary=False)
        readings = [ControllerResolution(1920, 1080), ControllerResolution(2560, 1440)]
        assert correct_resolution(g, readings) == (2560, 1440)

    def test_non_primary_closest_aspect(self):
        # 2048x1152 logical (125% of 2560x1440) on a 16:9 panel
        g = make_geometry(index=1, width=2048, height=1152, primary=False)
        readings = [ControllerResolution(1920, 1200), ControllerResolution(2560, 1440)]
        assert correct_resolution(g, readings) == (2560, 1440)

    def test_non_primary_excludes_readings_over_twice_own_pixels(self):
        g = make_geometry(index=1, width=1280, height=720, primary=False)
        readings = [ControllerResolution(5120, 1440), ControllerResolution(1680, 1050)]
        # 5120x1440 is 8x the pixels, so 1680x1050 is the only candidate
        assert correct_resolution(g, readings) == (1680, 1050)

    def test_non_primary_all_readings_excluded(self):
        g = make_geometry(index=1, width=800, height=600, primary=False)
        assert correct_resolution(g, [ControllerResolution(3840, 2160)]) == (800, 600)

    def test_non_primary_without_readings(self):
        g = make_geometry(index=1, width=1366, height=768, primary=False)
        assert correct_resolution(g, []) == (1366, 768)

    def test_non_primary_skips_zero_sized_readings(self):
        g = make_geometry(index=1, width=2048, height=1152, primary=False)
        readings = [ControllerResolution(1920, 0), ControllerResolution(0, 0), ControllerResolution(2560, 1440)]
        assert correct_resolution(g, readings) == (2560, 1440)

    def test_non_primary_zero_sized_geometry_kept(self):
        g = make_geometry(index=1, width=1920, height=0, primary=False)
        assert correct_resolution(g, [ControllerResolution(2560, 1440)]) == (1920, 0)


class TestMatchDescriptor:
    def test_resolution_hint_first(self):
        descriptors = [make_descriptor("DEL"), make_descriptor("PHL")]
        # 5120x1440 hints PHL before DEL
        assert match_descriptor(5120, 1440, False, descriptors, frozenset()) == 1

    def test_primary_prefers_internal_panel(self):
        descriptors = [make_descriptor("PHL"), make_descriptor("BOE")]
        assert match_descriptor(1920, 1080, True, descriptors, frozenset()) == 1

    def test_secondary_prefers_external_monitor(self):
        descriptors = [make_descriptor("BOE"), make_descriptor("DEL")]
        assert match_descriptor(1920, 1080, False, descriptors, frozenset()) == 1

    def test_falls_back_to_first_unclaimed(self):
        descriptors = [make_descriptor("XYZ", model="Mystery"), make_descriptor("QQQ", model="Other")]
        assert match_descriptor(1920, 1080, True, descriptors, frozenset({0})) == 1

    def test_none_when_all_claimed(self):
        descriptors = [make_descriptor("PHL")]
        assert match_descriptor(1920, 1080, False, descriptors, frozenset({0})) is None


class TestReconcile:
    def test_single_display_without_descriptors(self):
        displays = reconcile([make_geometry()], [], [])
        assert len(displays) == 1
        d = displays[0]
        assert (d.width, d.height) == (1920, 1080)
        assert d.descriptor is None
        assert d.monitor_device_id is None
        assert d.name == "Primary Display"
        assert d.manufacturer == "Unknown"

    def test_generic_name_for_secondary(self):
        displays = reconcile([make_geometry(0), make_geometry(1, primary=False)], [], [])
        assert displays[1].name == "Display 1"

    def test_laptop_plus_ultrawide(self):
        geometries = [
            make_geometry(0, 1280, 720, primary=True),
            make_geometry(1, 5120, 1440, x=1280, primary=False),
        ]
        descriptors = [
            make_descriptor("PHL", "PHL 499P9", instance="DISPLAY\\PHL0A5B\\5&1&0&UID1_0"),
            make_descriptor("TMX", "", instance="DISPLAY\\TMX1234\\4&2&0&UID2_0"),
        ]
        displays = reconcile(geometries, descriptors, [])
        assert displays[0].descriptor.manufacturer_code == "TMX"
        assert displays[1].descriptor.manufacturer_code == "PHL"
        assert parse_device_path(displays[0].monitor_device_id) == ("TMX1234", "4&2&0&UID2")
        assert parse_device_path(displays[1].monitor_device_id) == ("PHL0A5B", "5&1&0&UID1")

    def test_matching_is_injective(self):
        geometries = [make_geometry(i, primary=(i == 0)) for i in range(4)]
        descriptors = [make_descriptor("DEL", instance=f"DISPLAY\\DEL{i}\\5&{i}_0") for i in range(2)]
        displays = reconcile(geometries, descriptors, [])
        attached = [d.descriptor for d in displays if d.descriptor is not None]
        assert len(attached) == 2
        assert len({d.instance_id for d in attached}) == 2
        ids = [d.monitor_device_id for d in displays if d.monitor_device_id]
        assert len(ids) == len(set(ids))

    def test_deterministic(self):
        geometries = [make_geometry(0, 960, 540), make_geometry(1, 2048, 1152, primary=False)]
        descriptors = [make_descriptor("SAM"), make_descriptor("AUO", model="")]
        readings = [ControllerResolution(1920, 1080), ControllerResolution(2560, 1440)]
        first = reconcile(geometries, descriptors, readings)
        second = reconcile(geometries, descriptors, readings)
        assert first == second

    def test_does_not_mutate_inputs(self):
        descriptors = [make_descriptor("PHL")]
        reconcile([make_geometry()], descriptors, [])
        assert len(descriptors) == 1

    def test_primary_matched_first_even_when_listed_last(self):
        geometries = [
            make_geometry(0, 2560, 1440, primary=False),
            make_geometry(1, 1920, 1200, primary=True),
        ]
        descriptors = [make_descriptor("LGD", model="", instance="DISPLAY\\LGD0600\\4&1_0")]
        displays = reconcile(geometries, descriptors, [])
        assert displays[1].descriptor is not None
        assert displays[0].descriptor is None
        assert [d.index for d in displays] == [0, 1]

    def test_physical_size_carried_over(self):
        displays = reconcile([make_geometry()], [make_descriptor("BOE", size=(34, 19))], [])
        assert displays[0].physical_size_cm == (34, 19)

    def test_corrected_flag(self):
        displays = reconcile([make_geometry(0, 960, 540)], [], [])
        assert displays[0].corrected
        assert displays[0].geometry.width == 960
