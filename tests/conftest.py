"""Shared test fixtures and helpers for the OBS Deploy test suite."""

import pytest

from obs_deploy.config import AppSettings, EncoderProfile
from obs_deploy.models import (
    DisplayGeometry, EncodedConfiguration, MonitorDescriptor, ResolvedDisplay,
)


# --- Factory Helpers ---


def make_geometry(index=0, width=1920, height=1080, x=0, y=0, primary=True, name=None):
    """Create a DisplayGeometry with sensible defaults."""
    return DisplayGeometry(
        index=index,
        width=width,
        height=height,
        x=x,
        y=y,
        is_primary=primary,
        device_name=name or f"\\\\.\\DISPLAY{index + 1}",
    )


def make_descriptor(code="PHL", model="PHL 499P9", serial="", instance=None, size=None):
    """Create a MonitorDescriptor; instance id defaults to a WMI-style id."""
    return MonitorDescriptor(
        manufacturer_code=code,
        model_name=model,
        serial_number=serial,
        instance_id=instance if instance is not None else f"DISPLAY\\{code}0A5B\\5&1a2b3c4&0&UID4352_0",
        physical_size_cm=size,
    )


def make_resolved(index=0, width=1920, height=1080, primary=True, device_id=None, descriptor=None):
    """Create a ResolvedDisplay directly, bypassing reconciliation."""
    return ResolvedDisplay(
        geometry=make_geometry(index, width, height, primary=primary),
        width=width,
        height=height,
        descriptor=descriptor,
        monitor_device_id=device_id,
    )


def make_config(**overrides):
    """Create an EncodedConfiguration for a 1920x1080 base canvas."""
    values = dict(
        base_width=1920,
        base_height=1080,
        output_width=1440,
        output_height=810,
        video_bitrate_kbps=3437,
        audio_bitrate_kbps=192,
        fps=30,
        encoder_id="nvenc",
        monitor_device_id="\\\\?\\DISPLAY#PHL0A5B#5&1a2b3c4&0&UID4352#{e6f07b5f-ee97-4a90-b076-33f57bf4eaa7}",
        output_path="C:\\Users\\me\\Videos",
    )
    values.update(overrides)
    return EncodedConfiguration(**values)


class FakeProbe:
    """HardwareProbe stand-in serving a fixed snapshot."""

    def __init__(self, geometries=(), descriptors=(), readings=(), battery=False):
        self.geometries = list(geometries)
        self.descriptors = list(descriptors)
        self.readings = list(readings)
        self.battery = battery
        self.snapshots = 0

    def enumerate_displays(self):
        self.snapshots += 1
        return list(self.geometries)

    def read_monitor_descriptors(self):
        return list(self.descriptors)

    def read_controller_resolutions(self):
        return list(self.readings)

    def has_battery(self):
        return self.battery


# --- Fixtures ---


@pytest.fixture
def settings(tmp_path):
    """AppSettings pointing at a throwaway OBS config root."""
    return AppSettings(
        obs_config_dir=str(tmp_path / "obs-studio"),
        profile_name="Test",
        scene_collection="Test",
        output_path=str(tmp_path / "recordings"),
    )


@pytest.fixture
def gpu_encoder():
    return EncoderProfile(simple_id="nvenc", is_gpu=True)
