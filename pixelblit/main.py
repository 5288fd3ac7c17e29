"""Точка входа: `pixelblit NUM_WORKERS INPUT_FILE [FILTERS]`."""
from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from pixelblit.config import PROGNAME, BlitConfig, ConfigManager, setup_logging
from pixelblit.controllers.collector_controller import Collector
from pixelblit.errors import BlitError
from pixelblit.models.render_target import RenderTarget
from pixelblit.services.fabric_service import ProcessFabric
from pixelblit.services.filter_service import FILTERS
from pixelblit.services.source_service import open_source


def parse_num_workers(value: str) -> int:
    """Положительное целое; всё остальное -- ошибка использования."""
    try:
        result = int(value, 10)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number of workers ({value!r})") from None
    if result < 1:
        raise argparse.ArgumentTypeError(f"invalid number of workers ({result})")
    return result


def build_parser() -> argparse.ArgumentParser:
    filter_help = ", ".join(f"{f.key}={f.name}" for f in FILTERS.values())
    parser = argparse.ArgumentParser(
        prog=PROGNAME,
        description="Render raw RGB data read in parallel by a pool of worker processes.",
    )
    parser.add_argument("num_workers", metavar="NUM_WORKERS", type=parse_num_workers)
    parser.add_argument("input_file", metavar="INPUT_FILE")
    parser.add_argument("filters", metavar="FILTERS", nargs="?", default="", help=f"filter keys, applied in order ({filter_help})")
    parser.add_argument("--headless", action="store_true", help="collect the image without opening a window")
    parser.add_argument("--batch-size", type=int, default=None, help="records per message")
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING, ...")
    return parser


def run(args: argparse.Namespace, config: BlitConfig) -> RenderTarget:
    source = open_source(args.input_file)
    collector = Collector(fabric=ProcessFabric(config.start_method), config=config)
    target = RenderTarget()

    def render(sink: RenderTarget) -> RenderTarget:
        return collector.run(args.num_workers, source, args.filters, sink)

    if args.headless:
        return render(target)

    from pixelblit.app import open_window

    window = open_window(target)
    return window.run_render(render, on_cancel=collector.cancel)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level or "INFO")

    config = ConfigManager().load()
    if args.batch_size is not None:
        config.batch_size = args.batch_size
    if args.log_level is not None:
        config.log_level = args.log_level
    setup_logging(config.log_level)

    try:
        target = run(args, config)
    except BlitError as exc:
        print(f"{PROGNAME}({exc.role}): {exc}", file=sys.stderr)
        return 1
    logging.info(f"[collector] Rendered {target.written} pixels")
    return 0


if __name__ == "__main__":
    sys.exit(main())
