#!/usr/bin/env python3
"""
Basic devogrow development example.

This script demonstrates:
1. Building a developmental mapper from a named configuration
2. Binding it to a target body and a random genotype
3. Growing the organism stage by stage
4. Driving the final organism's controller for a few steps
"""

import numpy as np

from devogrow import Config, Development
from devogrow.main import random_genotype


def main():
    print("=" * 60)
    print("devogrow - Developmental growth of voxel creatures")
    print("Basic Development Example")
    print("=" * 60)
    print()

    # Tree growth with a shared neural controller, 3 cells at birth, 2 per stage
    config = Config.from_name("devoTreeHomoMLP-0.65-1-1-3-2", target="box-7x7")

    print("Configuration:")
    print(f"  Growth: {config.growth}")
    print(f"  Controller: {config.controller} (signals={config.signals})")
    print(f"  Stage budget: {config.n_initial} + {config.n_step} per stage")
    print()

    rng = np.random.default_rng(42)
    target = config.build_target()
    mapper = config.build_mapper()
    genotype = random_genotype(mapper.example_for(target), rng)

    development = Development(mapper.bind(target)(genotype))

    def stage_callback(d: Development):
        organism = d.organism
        print(f"  Stage {d.stage_count - 1}: {organism.n_voxels} voxels, shape {organism.shape}")

    print("Developing 6 stages...")
    development.run(6, callback=stage_callback, show_progress=True)
    print()

    organism = development.organism
    print("Final body:")
    print(organism.to_ascii())
    print()

    print("Controller outputs over 3 steps:")
    for t in (0.0, 0.1, 0.2):
        actuation = organism.controller.control(t)
        live = actuation[organism.mask]
        print(f"  t={t:.1f}: mean={live.mean():+.4f}, min={live.min():+.4f}, max={live.max():+.4f}")
    print()

    print("To grow from the command line, run:")
    print("  python -m devogrow.main --devo devoTreeHomoMLP-0.65-1-1-3-2 --stages 6")
    print()


if __name__ == "__main__":
    main()
