#!/usr/bin/env python3
"""
StickerStag command line.

Usage:
    stickerstag apply avatar.png out.png "greyscale | sharpen 2"
    stickerstag trigger avatar.png triggered.gif --frames 9 --delay 15
    stickerstag list
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .codec import decode, encode, format_from_path
from .config import settings
from .exceptions import StickerStagError
from .filters.registry import list_filters
from .pipeline import EffectPipeline, trigger_gif


def _cmd_apply(args: argparse.Namespace) -> int:
    pipeline = EffectPipeline.parse(args.filters)
    output_format = format_from_path(args.output)
    result = pipeline.apply(decode(str(args.input)))
    args.output.write_bytes(encode(result, output_format))
    print(f"Wrote {args.output} ({result.width}x{result.height}, {len(pipeline)} step(s))")
    return 0


def _cmd_trigger(args: argparse.Namespace) -> int:
    data = trigger_gif(str(args.input), frame_count=args.frames, delay_ms=args.delay)
    args.output.write_bytes(data)
    print(f"Wrote {args.output} ({args.frames} frames)")
    return 0


def _cmd_list(args: argparse.Namespace) -> int:
    for filter_cls in list_filters():
        params = ", ".join(
            f"{p['id']}={p['default']}" if not p.get('required') else f"{p['id']} (required)"
            for p in filter_cls.get_params_schema()
        )
        line = f"{filter_cls.filter_type:<12} {filter_cls.description}"
        print(f"{line}  [{params}]" if params else line)
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        prog="stickerstag",
        description="Apply pixel filters and the trigger animation to images",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    apply_parser = commands.add_parser("apply", help="Run a filter chain on an image")
    apply_parser.add_argument("input", help="Input file or http(s) URL")
    apply_parser.add_argument("output", type=Path, help="Output file, format chosen by extension")
    apply_parser.add_argument("filters", help='Filter chain, e.g. "greyscale | sharpen 2"')
    apply_parser.set_defaults(handler=_cmd_apply)

    trigger_parser = commands.add_parser("trigger", help="Write the trigger GIF animation")
    trigger_parser.add_argument("input", help="Input file or http(s) URL")
    trigger_parser.add_argument("output", type=Path, help="Output GIF file")
    trigger_parser.add_argument(
        "--frames",
        type=int,
        default=settings.TRIGGER_FRAME_COUNT,
        help=f"Number of frames (default: {settings.TRIGGER_FRAME_COUNT})",
    )
    trigger_parser.add_argument(
        "--delay",
        type=int,
        default=settings.TRIGGER_FRAME_DELAY_MS,
        help=f"Frame delay in milliseconds (default: {settings.TRIGGER_FRAME_DELAY_MS})",
    )
    trigger_parser.set_defaults(handler=_cmd_trigger)

    list_parser = commands.add_parser("list", help="List available filters")
    list_parser.set_defaults(handler=_cmd_list)

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        return args.handler(args)
    except (StickerStagError, OSError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
