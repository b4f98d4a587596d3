"""
Developmental mapper and stage driver.

A DevelopmentalMapper combines one growth strategy with one controller
strategy. Binding it to a target fixes the genotype layout and the
prototype voxel; binding a genotype fixes every parameter; the resulting
develop function is called once per stage:

    develop = mapper.bind(target)(genotype)
    stage = develop(None)        # birth
    stage = develop(stage)       # next stage, and so on

Each stage is an explicit (state, organism) pair.
"""

import logging
from typing import Callable, NamedTuple, Optional, Union

import numpy as np
from tqdm import tqdm

from .controllers import ControllerStrategy, SteppedController
from .errors import InvalidPreviousState
from .growth import GrowthStrategy
from .organism import Organism, TargetSpec, materialize
from .state import DevelopmentState

logger = logging.getLogger(__name__)

Target = Union[Organism, np.ndarray, TargetSpec]


class Stage(NamedTuple):
    """One developmental stage: the state to grow from and the organism built."""

    state: DevelopmentState
    organism: Organism


DevelopFunction = Callable[[Optional[Stage]], Stage]


class DevelopmentalMapper:
    """
    Genotype -> staged organism mapping.

    Attributes:
        growth: How the body grows between stages
        controller: How a controller is built for each body
        n_initial: Cells granted at birth
        n_step: Cells granted at every later stage
        controller_step: Control period; 0 recomputes at every call
    """

    def __init__(
        self,
        growth: GrowthStrategy,
        controller: ControllerStrategy,
        n_initial: int = 1,
        n_step: int = 1,
        controller_step: float = 0.0,
    ):
        if n_initial < 0:
            raise ValueError(f"n_initial must be >= 0, got {n_initial}")
        if n_step < 0:
            raise ValueError(f"n_step must be >= 0, got {n_step}")
        if controller_step < 0:
            raise ValueError(f"controller_step must be >= 0, got {controller_step}")
        self.growth = growth
        self.controller = controller
        self.n_initial = n_initial
        self.n_step = n_step
        self.controller_step = controller_step

    def target_spec(self, target: Target) -> TargetSpec:
        if isinstance(target, TargetSpec):
            return target
        return TargetSpec.of(target, uniform_sensors=self.controller.requires_uniform_sensors)

    def _sizes(self, spec: TargetSpec) -> tuple[int, int]:
        return self.controller.n_weights(spec), self.controller.n_cell_values(spec)

    def example_for(self, target: Target):
        """Zero-valued genotype of the exact shape this mapper needs for `target`."""
        spec = self.target_spec(target)
        return self.growth.example_for(spec, *self._sizes(spec))

    def bind(self, target: Target) -> Callable[[object], DevelopFunction]:
        """
        Bind the mapper to a target.

        Raises:
            InvalidTarget: Target has no voxel or mixed sensor arity
        """
        spec = self.target_spec(target)
        n_weights, n_cell_values = self._sizes(spec)
        state_type = self.growth.state_type(n_cell_values)

        def with_genotype(genotype) -> DevelopFunction:
            params, weights = self.growth.decode(genotype, spec, n_weights, n_cell_values)

            def develop(previous: Optional[Stage] = None) -> Stage:
                if previous is None:
                    state = None
                    previous_body = None
                    n = self.n_initial
                else:
                    if not isinstance(previous, Stage) or not isinstance(previous.state, state_type):
                        raise InvalidPreviousState(
                            f"Previous stage carries no {state_type.__name__}; cannot develop"
                        )
                    state = previous.state
                    previous_body = previous.organism.body
                    n = state.n_enabled + self.n_step

                result = self.growth.grow(params, state, previous_body, n)
                body = materialize(result.cells, spec.prototype)
                cell_values = result.cell_values
                if not result.cells.any():
                    cell_values = np.zeros((1, 1, n_cell_values))
                controller = self.controller.build(body, weights, cell_values)
                if self.controller_step > 0:
                    controller = SteppedController(controller, self.controller_step)

                logger.debug(
                    "Developed %d/%d cells into a %dx%d body",
                    result.state.n_enabled, n, body.shape[1], body.shape[0],
                )
                return Stage(result.state, Organism(body, controller))

            return develop

        return with_genotype


class Development:
    """
    Sequential stage driver for one lineage.

    Attributes:
        develop: Bound develop function
        stage: Current stage, None before birth
        stage_count: Number of stages developed
        history: Every stage developed so far
    """

    def __init__(self, develop: DevelopFunction):
        self.develop = develop
        self.reset()

    @property
    def organism(self) -> Optional[Organism]:
        return None if self.stage is None else self.stage.organism

    def step(self) -> Stage:
        """Develop one more stage."""
        self.stage = self.develop(self.stage)
        self.history.append(self.stage)
        self.stage_count += 1
        return self.stage

    def run(
        self,
        stages: int,
        callback: Optional[Callable[["Development"], None]] = None,
        callback_interval: int = 1,
        show_progress: bool = False,
    ) -> Stage:
        """
        Develop several stages.

        Args:
            stages: Number of stages to develop
            callback: Optional function called periodically
            callback_interval: How often to call callback
            show_progress: Whether to show progress bar
        """
        iterator = range(stages)
        if show_progress:
            iterator = tqdm(iterator, desc="Developing")

        for i in iterator:
            self.step()

            if callback is not None and (i + 1) % callback_interval == 0:
                callback(self)

        return self.stage

    def reset(self) -> None:
        """Return to the unborn state."""
        self.stage: Optional[Stage] = None
        self.stage_count = 0
        self.history: list[Stage] = []
