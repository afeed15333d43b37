#!/usr/bin/env python3
"""
╔══════════════════════════════════════════════════════════════╗
║                 OBS Deploy  — Entry Point                    ║
║    Detect Displays, Pick a Capture Target & Write OBS Config ║
║          Bitrate Tuned to the Chosen Performance Tier        ║
╚══════════════════════════════════════════════════════════════╝

Usage:
    python main.py                          Launch the GUI application
    python main.py --tier 60                Configure the primary display
    python main.py --mode external          Configure the external monitor
    python main.py --custom 2560x1440       Configure the display at 2560x1440
    python main.py --check                  Report what would be written
    python main.py --test-modes             Resolve every mode, write nothing
"""

import argparse
import logging
import sys

# ─── Logging Setup ───────────────────────────────────────────
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(name)s — %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("obs_deploy")


def check_dependencies():
    """Verify the GUI toolkit is installed and give a clear message if not."""
    try:
        import customtkinter  # noqa: F401
    except ImportError:
        print("\n" + "=" * 55)
        print("  MISSING DEPENDENCIES")
        print("=" * 55)
        print("\n  Install with:  pip install customtkinter\n")
        sys.exit(1)


def build_parser() -> argparse.ArgumentParser:
    from obs_deploy.models import PerformanceTier

    parser = argparse.ArgumentParser(
        prog="obs-deploy",
        description="Detect displays and write an OBS profile + scene collection.",
    )
    parser.add_argument("--mode", choices=["primary", "internal", "external", "interactive"],
                        help="display selection strategy")
    parser.add_argument("--custom", metavar="WxH", default="",
                        help="select the display with exactly this resolution")
    parser.add_argument("--tier", type=int, default=75,
                        choices=[t.value for t in PerformanceTier],
                        help="percentage of native resolution to record at (default 75)")
    parser.add_argument("--check", action="store_true",
                        help="resolve the primary display and report; write nothing")
    parser.add_argument("--template", action="store_true",
                        help="write fresh artifacts from templates instead of patching")
    parser.add_argument("--config-dir", default="", help="OBS config root (default: per-user)")
    parser.add_argument("--profile", default="Untitled", help="OBS profile name")
    parser.add_argument("--collection", default="Untitled", help="OBS scene collection name")
    parser.add_argument("--output-path", default="", help="recording output folder")
    parser.add_argument("--fps", type=int, default=None, help="recording frame rate")
    parser.add_argument("--test-modes", action="store_true",
                        help="resolve every selection mode against fresh snapshots")
    parser.add_argument("--gui", action="store_true", help="launch the GUI")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser


def settings_from_args(args):
    from obs_deploy.config import AppSettings
    from obs_deploy.utils import sanitize_name

    settings = AppSettings(
        mode=args.mode,
        custom_resolution=args.custom,
        tier=args.tier,
        strategy="template" if args.template else "patch",
        check_only=args.check,
        obs_config_dir=args.config_dir,
        profile_name=sanitize_name(args.profile),
        scene_collection=sanitize_name(args.collection),
        output_path=args.output_path,
    )
    if args.fps:
        settings.fps = args.fps
    # No explicit mode: ask when someone is at the terminal
    if not settings.mode and not settings.custom_resolution and sys.stdin.isatty():
        settings.mode = "interactive"
    return settings


def run_test_modes(engine) -> int:
    from obs_deploy.errors import DeployError

    for mode, outcome in engine.probe_all_modes().items():
        if isinstance(outcome, DeployError):
            print(f"  {mode:<12} ✖ {outcome}")
        else:
            print(f"  {mode:<12} {outcome.width}x{outcome.height}  {outcome.source}"
                  f"  {outcome.monitor_device_id or '-'}")
    return 0


def launch_gui(settings=None) -> int:
    check_dependencies()

    from obs_deploy.gui.app import App

    logger.info("Starting OBS Deploy …")
    app = App(settings)
    app.mainloop()
    return 0


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    if not argv:
        return launch_gui()

    args = build_parser().parse_args(argv)
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    settings = settings_from_args(args)
    if args.gui:
        return launch_gui(settings)

    from obs_deploy.engine import DeployEngine

    engine = DeployEngine(settings)
    if args.test_modes:
        return run_test_modes(engine)
    return 0 if engine.run() else 1


if __name__ == "__main__":
    sys.exit(main())
