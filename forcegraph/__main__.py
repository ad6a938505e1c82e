import argparse
import logging
import sys
from typing import Dict, List, Optional, Sequence

import numpy as np

from forcegraph import GraphEditor, InvalidRequest, SimulationParameters
from forcegraph.config import DEFAULT_UPDATE_DELTA, get_default_parameters

logger = logging.getLogger(__name__)


def _configure_logging(level: str) -> None:
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format="%(levelname)s:%(name)s:%(message)s",
    )


def _parse_overrides(pairs: Sequence[str]) -> Dict[str, str]:
    overrides: Dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise InvalidRequest(f"expected key=value, got {pair!r}")
        overrides[key.strip()] = value.strip()
    return overrides


def build_random_tree(editor: GraphEditor, count: int, rng: np.random.Generator) -> List:
    """Grow ``count`` nodes under the default node, each attached to a random existing one."""

    nodes = [editor.default_node]
    for label in range(1, count + 1):
        parent = nodes[int(rng.integers(len(nodes)))]
        nodes.append(editor.add_child(parent, owner=f"node-{label}"))
    return nodes


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Lay out a random tree with the force graph engine")
    parser.add_argument(
        "--nodes",
        type=int,
        default=12,
        help="Number of nodes to grow under the default node (default: 12)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=123,
        help="Random seed for tree shape and insert jitter (default: 123)",
    )
    parser.add_argument(
        "--dt",
        type=float,
        default=DEFAULT_UPDATE_DELTA,
        help=f"Seconds per simulation tick (default: {DEFAULT_UPDATE_DELTA})",
    )
    parser.add_argument(
        "--max-ticks",
        type=int,
        default=5000,
        help="Stop after this many ticks even if the layout is still moving (default: 5000)",
    )
    parser.add_argument(
        "--param",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Override a simulation parameter, e.g. force_charge=8000 (repeatable)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (default: INFO)",
    )
    args = parser.parse_args(argv)

    _configure_logging(args.log_level)

    try:
        parameters = SimulationParameters.from_mapping(
            _parse_overrides(args.param), base=get_default_parameters()
        )
    except InvalidRequest as exc:
        parser.error(str(exc))
    if args.nodes < 0:
        parser.error("--nodes must be non-negative")

    rng = np.random.default_rng(args.seed)
    editor = GraphEditor(parameters, rng=rng, default_owner="root")
    logger.info("Growing a random tree of %d node(s) with seed %d", args.nodes, args.seed)
    nodes = build_random_tree(editor, args.nodes, rng)

    ticks = editor.run_until_idle(dt=args.dt, max_ticks=args.max_ticks)
    if editor.animating:
        logger.warning("Layout still moving after %d tick(s)", ticks)
    else:
        logger.info("Layout settled after %d tick(s)", ticks)

    graph = editor.graph
    print(f"Ticks: {ticks}")
    print(f"Settled: {not editor.animating}")
    print(f"Last move: {editor.last_move:.6f}")
    print(f"Components: {graph.component_count()}")
    print("Positions:")
    for handle in nodes:
        x, y = graph.position(handle)
        print(f"  {graph.get(handle).owner}: ({x:.3f}, {y:.3f})")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
