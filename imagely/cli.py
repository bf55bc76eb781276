"""
Command Line Interface
======================

Usage:
    imagely SOURCE DESTINATION [-w WIDTH] [-h HEIGHT] [-s SCALE] [-b BG]
            [-d JSON] [-l] [--batch] [--logFilepath PATH]

``-h`` sets the viewport height; use ``--help`` for usage.
"""

from typing import List, Optional
import argparse
import asyncio
import sys

from imagely import __version__
from imagely.api import build_request, render_batch
from imagely.core.exceptions import ImagelyError
from imagely.core.rendering.renderer import Renderer
from imagely.models.schemas import Dimensions, RemoteAssetMode


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="imagely",
        description="Render an HTML file or URL as a JPG, PNG, GIF or PDF image",
        add_help=False,
    )
    parser.add_argument("source", help="HTML filepath or URL")
    parser.add_argument("destination", help="Destination image filepath (.jpg, .png, .gif, .pdf)")
    parser.add_argument("--width", "-w", type=int, help="Viewport pixel width")
    parser.add_argument("--height", "-h", type=int, help="Viewport pixel height")
    parser.add_argument("--scale", "-s", type=float, help="Zoom level; 2 for HiDPI output")
    parser.add_argument("--bg", "-b", help="Background color")
    parser.add_argument("--json", "-d", help="JSON file preloaded into window.data")
    parser.add_argument(
        "--log", "-l", action="store_true", help="Print rendered dimensions (or the error)"
    )
    parser.add_argument(
        "--batch", action="store_true", help="Render once per record of the --json array"
    )
    parser.add_argument("--logFilepath", dest="log_filepath", help="Batch log output path")
    parser.add_argument(
        "--remote-assets",
        choices=[mode.value for mode in RemoteAssetMode],
        help="Inline remote scripts/stylesheets (fetch) or leave them as links (skip)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--help", action="help", help="Show this help message and exit")
    return parser


def format_dimensions(dimensions: Dimensions) -> str:
    def value(v: Optional[int]) -> str:
        return "null" if v is None else str(v)

    return f"{value(dimensions.width)} {value(dimensions.height)}"


async def run(args: argparse.Namespace) -> int:
    """Run a single render or a batch from parsed arguments."""
    options = {
        "width": args.width,
        "height": args.height,
        "scale": args.scale,
        "bg": args.bg,
        "remote_assets": args.remote_assets,
    }

    if args.batch:
        if not args.json:
            print("Error: --batch requires --json", file=sys.stderr)
            return 2
        try:
            log = await render_batch(
                args.source, args.destination, args.json, args.log_filepath, **options
            )
        except (ImagelyError, OSError) as e:
            print(e, file=sys.stdout if args.log else sys.stderr)
            return 1
        if args.log:
            print(f"success: {len(log.success)} failure: {len(log.failure)}")
        return 0

    try:
        request = build_request(args.source, args.destination, json=args.json, **options)
    except ImagelyError as e:
        print(e, file=sys.stdout if args.log else sys.stderr)
        return 1

    outcome = await Renderer().render(request)
    if outcome.error is not None:
        print(outcome.error, file=sys.stdout if args.log else sys.stderr)
        return 1

    if args.log and outcome.dimensions is not None:
        print(format_dimensions(outcome.dimensions))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
