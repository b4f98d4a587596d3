"""
Command-line interface for devogrow.

Usage:
    python -m devogrow.main --help
    python -m devogrow.main --devo devoPhases-1.0-5-1 --stages 5
    python -m devogrow.main --devo devoTreeHomoMLP-0.65-1-1-3-2 --target box-7x7 --seed 1
"""

import argparse
import json
import logging
import sys

import numpy as np

from .config import Config
from .development import Development
from .errors import DevelopmentError
from .tree import Leaf, random_tree


def random_genotype(example, rng: np.random.Generator, tree_depth: int = 3):
    """Random genotype with the layout of `example`."""
    if isinstance(example, tuple):
        tree, weights = example
        n_values = len(tree.values) if isinstance(tree, Leaf) else 0
        return random_tree(rng, tree_depth, n_values), rng.normal(size=np.shape(weights))
    return rng.normal(size=np.shape(example))


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser with all options."""
    parser = argparse.ArgumentParser(
        description="devogrow - Developmental growth of voxel creatures",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    # Basic options
    parser.add_argument(
        "--devo", type=str, default=None,
        help="Named developmental function, e.g. devoPhases-1.0-5-1"
    )
    parser.add_argument(
        "--stages", type=int, default=5,
        help="Number of developmental stages"
    )
    parser.add_argument(
        "--seed", type=int, default=None,
        help="Random seed for reproducibility"
    )
    parser.add_argument(
        "--tree-depth", type=int, default=3,
        help="Depth of random genotype trees"
    )
    parser.add_argument(
        "--verbose", action="store_true",
        help="Log growth events"
    )
    parser.add_argument(
        "--print-config", action="store_true",
        help="Print the configuration as JSON"
    )

    # Config parameter overrides
    parser.add_argument("--target", type=str, default=None)
    parser.add_argument("--growth", type=str, default=None, choices=["grid", "ca", "tree"])
    parser.add_argument("--controller", type=str, default=None, choices=["phases", "mlp"])
    parser.add_argument("--n-initial", type=int, default=None, dest="n_initial")
    parser.add_argument("--n-step", type=int, default=None, dest="n_step")
    parser.add_argument("--controller-step", type=float, default=None, dest="controller_step")
    parser.add_argument("--signals", type=int, default=None)
    parser.add_argument("--selection", type=str, default=None,
                        choices=["areaRatio", "areaRatioEnergy"])

    return parser


def build_config(args: argparse.Namespace) -> Config:
    if args.devo is None:
        return Config.from_args(args)
    overrides = {
        k: v for k, v in vars(args).items()
        if k in Config.__dataclass_fields__ and v is not None
    }
    return Config.from_name(args.devo, **overrides)


def main(argv=None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    try:
        config = build_config(args)
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    if args.print_config:
        print(json.dumps(config.to_dict(), indent=2))
        print()

    print("devogrow development")
    print(f"  Growth: {config.growth}, controller: {config.controller}")
    print(f"  Target: {config.target}")
    print(f"  Stages: {args.stages}")
    print(f"  Seed: {args.seed if args.seed is not None else 'random'}")
    print()

    rng = np.random.default_rng(args.seed)
    target = config.build_target()
    mapper = config.build_mapper()

    try:
        genotype = random_genotype(mapper.example_for(target), rng, args.tree_depth)
        development = Development(mapper.bind(target)(genotype))

        def print_stage(d: Development) -> None:
            organism = d.organism
            print(f"Stage {d.stage_count - 1}: {organism.n_voxels} voxels")
            print(organism.to_ascii())
            print()

        development.run(args.stages, callback=print_stage)
    except DevelopmentError as e:
        print(f"Development error: {e}", file=sys.stderr)
        return 1

    print("Development complete!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
