"""
flowtrack Command Line Interface

Usage:
    flowtrack <command> [options]

Commands:
    track       Track features from a camera or video file
    config      Write an example configuration file

Examples:
    flowtrack track                         # webcam 0
    flowtrack track --video drive.mp4 -out preview -out csv
    flowtrack track --video drive.mp4 --no-display --reinit-policy on_empty
    flowtrack config --create flowtrack.json

Controls (track):
    r       Reinitialize features
    q, ESC  Quit
"""

import argparse
import logging
import sys

from flowtrack import __version__

LOGGER = logging.getLogger("flowtrack")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='flowtrack',
        description='Optical flow for obstacle avoidance',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    parser.add_argument(
        '-V', '--version',
        action='version',
        version=f'flowtrack {__version__}',
    )

    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    # Track command
    track_parser = subparsers.add_parser(
        'track',
        help='Track features from a camera or video file',
    )
    source = track_parser.add_mutually_exclusive_group()
    source.add_argument(
        '--video',
        help='The path to the video file',
    )
    source.add_argument(
        '--camera',
        type=int,
        default=0,
        help='Camera index (default: 0)',
    )
    track_parser.add_argument(
        '-c', '--config',
        help='JSON configuration file',
    )
    track_parser.add_argument(
        '-out', '--output',
        action='append',
        dest='outputs',
        metavar='SPEC',
        help='Output specification, e.g. preview or csv=filename=pts.csv (repeatable)',
    )
    track_parser.add_argument(
        '--no-display',
        action='store_true',
        help='Disable live display',
    )
    track_parser.add_argument(
        '--max-frames',
        type=int,
        default=None,
        help='Stop after this many frames',
    )
    track_parser.add_argument(
        '--reinit-policy',
        choices=['manual', 'on_empty'],
        default=None,
        help='What to do when every point is lost (default: manual)',
    )
    track_parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable debug logging',
    )

    # Config command
    config_parser = subparsers.add_parser(
        'config',
        help='Write an example configuration file',
    )
    config_parser.add_argument(
        '--create',
        metavar='PATH',
        default='flowtrack.json',
        help='Where to write the file (default: flowtrack.json)',
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    from flowtrack.pipeline.driver import ReturnCode

    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as e:
        # --help and --version exit with 0
        if e.code in (0, None):
            return int(ReturnCode.SUCCESS)
        return int(ReturnCode.ERROR_COMMAND_LINE)

    if args.command is None:
        parser.print_help()
        return int(ReturnCode.SUCCESS)

    if args.command == 'track':
        return int(run_track(args))
    elif args.command == 'config':
        return int(run_config(args))

    parser.print_help()
    return int(ReturnCode.ERROR_COMMAND_LINE)


def run_track(args) -> int:
    """Run the tracking loop."""
    from flowtrack.core.config import Config, apply_env_overrides, load_config
    from flowtrack.core.errors import CaptureError, ConfigError
    from flowtrack.core.video import VideoSource
    from flowtrack.outputs import parse_output_specs
    from flowtrack.pipeline.driver import LoopDriver, ReturnCode
    from flowtrack.tracking import FramePreprocessor, TrackMaintainer
    from flowtrack.utils.log import setup_logging

    setup_logging(logging.DEBUG if args.verbose else logging.INFO)

    try:
        config = load_config(args.config) if args.config else Config()
        apply_env_overrides(config)
        if args.reinit_policy:
            config.tracking.reinit_policy = args.reinit_policy
        if args.no_display:
            config.display.enabled = False
        config.validate()
    except (FileNotFoundError, ConfigError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return ReturnCode.ERROR_COMMAND_LINE

    if args.video:
        print(f"Using video file: {args.video}")
    source = VideoSource(args.video if args.video else args.camera)

    try:
        source.open()
    except CaptureError as e:
        print(f"{e}. Exiting.", file=sys.stderr)
        return ReturnCode.ERROR_COULD_NOT_OPEN_VIDEO

    try:
        outputs = None
        if args.outputs:
            name = args.video if args.video else f"camera{args.camera}"
            outputs = parse_output_specs(args.outputs, name)

        maintainer = TrackMaintainer(
            config.tracking,
            FramePreprocessor(config.preprocess),
        )
        driver = LoopDriver(
            source,
            maintainer,
            outputs=outputs,
            display=config.display,
            max_frames=args.max_frames,
            fps=source.properties.fps,
        )
        code = driver.run()
    except ValueError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return ReturnCode.ERROR_COMMAND_LINE
    except Exception as e:
        LOGGER.exception("Unhandled exception reached the top of main: %s", e)
        print("Exiting.", file=sys.stderr)
        return ReturnCode.ERROR_UNHANDLED_EXCEPTION
    finally:
        source.close()

    if outputs is not None and code == ReturnCode.SUCCESS:
        for path in outputs.get_output_paths():
            print(f"Wrote {path}")
    print(f"Processed {driver.frame_num} frames")
    return code


def run_config(args) -> int:
    """Write an example configuration."""
    from flowtrack.core.config import create_example_config
    from flowtrack.pipeline.driver import ReturnCode

    create_example_config(args.create)
    return ReturnCode.SUCCESS


if __name__ == '__main__':
    sys.exit(main())
