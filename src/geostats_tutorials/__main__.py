"""
Command line runner for the tutorials.

    python -m geostats_tutorials list
    python -m geostats_tutorials run estimation_problems --output figures
"""

from __future__ import annotations

import argparse
import inspect
import logging
import sys
from pathlib import Path

logger = logging.getLogger("geostats_tutorials")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="geostats-tutorials",
        description="Run geostatistics tutorials and save their figures.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("list", help="List the available tutorials.")

    run = commands.add_parser("run", help="Run a tutorial.")
    run.add_argument("name", help="Tutorial name (see 'list').")
    run.add_argument("--seed", type=int, default=None, help="Random seed (default per tutorial).")
    run.add_argument(
        "--output",
        type=Path,
        default=Path("figures"),
        help="Directory where figures are saved as PNG.",
    )
    run.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Worker processes, for tutorials that simulate in parallel.",
    )
    run.add_argument("-v", "--verbose", action="count", default=0, help="Increase log verbosity.")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    # Heavy imports (gstools, matplotlib) only when needed
    import matplotlib

    matplotlib.use("Agg")
    from geostats_tutorials.plotting import set_plot_defaults
    from geostats_tutorials.tutorials import TITLES, TUTORIALS

    if args.command == "list":
        for name, title in TITLES.items():
            print(f"{name:<24} {title}")
        return 0

    level = logging.WARNING - 10 * min(args.verbose, 2)
    logging.basicConfig(level=level, format="%(asctime)s %(name)s %(levelname)s: %(message)s")

    if args.name not in TUTORIALS:
        print(f"Unknown tutorial '{args.name}'. Available: {', '.join(TUTORIALS)}", file=sys.stderr)
        return 2

    run = TUTORIALS[args.name]
    accepted = inspect.signature(run).parameters
    kwargs = {}
    if args.seed is not None:
        kwargs["seed"] = args.seed
    if args.workers is not None:
        if "workers" in accepted:
            kwargs["workers"] = args.workers
        else:
            logger.warning("Tutorial '%s' runs serially, ignoring --workers", args.name)

    set_plot_defaults()
    logger.info("Running %s", args.name)
    result = run(**kwargs)

    for path in result.save_figures(args.output):
        print(f"saved {path}")
    for key, value in result.scalars().items():
        print(f"{key} = {value:.6g}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
