"""
Tests for devogrow configuration.
"""

import argparse

import pytest

from devogrow.config import Config
from devogrow.controllers import DistributedControllerStrategy, OscillatorControllerStrategy
from devogrow.development import DevelopmentalMapper
from devogrow.growth import GridGrowth, NeuralCAGrowth, TreeGrowth
from devogrow.voxel import area_ratio, area_ratio_energy


class TestConfig:
    """Tests for Config dataclass."""

    def test_defaults(self):
        """Config initializes with oscillators on a direct grid."""
        config = Config()

        assert config.growth == "grid"
        assert config.controller == "phases"
        assert config.target == "box-5x5"
        assert config.n_initial == 5
        assert config.n_step == 1
        assert config.controller_step == 0.0
        assert config.inner_layer_ratio == 0.65

    def test_invalid_growth(self):
        """Config rejects unknown growth strategies."""
        with pytest.raises(ValueError, match="growth"):
            Config(growth="random")

    def test_invalid_controller(self):
        """Config rejects unknown controller families."""
        with pytest.raises(ValueError, match="controller"):
            Config(controller="pid")

    def test_invalid_budget(self):
        """Config rejects negative stage budgets."""
        with pytest.raises(ValueError, match="n_step"):
            Config(n_step=-1)
        with pytest.raises(ValueError, match="controller_step"):
            Config(controller_step=-0.5)

    def test_selection_needs_grid_or_tree(self):
        """Conditioning is not available to the neural automaton."""
        with pytest.raises(ValueError, match="grid and tree"):
            Config(growth="ca", selection="areaRatio")
        with pytest.raises(ValueError, match="selection"):
            Config(growth="tree", selection="volume")

    def test_heterogeneous_needs_mlp(self):
        """Per-voxel networks need neural controllers outside the automaton."""
        with pytest.raises(ValueError, match="heterogeneous"):
            Config(heterogeneous=True)
        with pytest.raises(ValueError, match="CA"):
            Config(growth="ca", controller="mlp", heterogeneous=True)

    def test_invalid_target(self):
        """Config rejects unknown shape names."""
        with pytest.raises(ValueError, match="shape"):
            Config(target="biped-4x3")

    def test_build_target(self):
        """Targets are full boxes of sensorized voxels."""
        body = Config(target="box-4x3", sensors=2).build_target()

        assert body.shape == (3, 4)
        assert body[0, 0].n_of_readings == 2

    def test_serialization_roundtrip(self):
        """Config serializes and deserializes correctly."""
        config = Config(growth="tree", controller="mlp", selection="areaRatio", n_step=3)
        restored = Config.from_dict(config.to_dict())

        assert restored == config

    def test_from_args(self):
        """Unset arguments keep their defaults."""
        args = argparse.Namespace(growth="ca", n_step=None, stages=10)
        config = Config.from_args(args)

        assert config.growth == "ca"
        assert config.n_step == 1


class TestNamedConfig:
    """Tests for named descriptors."""

    def test_phases(self):
        """devoPhases fixes the frequency and evolves phases on a grid."""
        config = Config.from_name("devoPhases-1.5-5-2")

        assert (config.growth, config.controller) == ("grid", "phases")
        assert config.frequency == 1.5
        assert (config.n_initial, config.n_step) == (5, 2)
        assert config.controller_step == 0.0

    def test_controller_step(self):
        """The optional last field is the controller step."""
        config = Config.from_name("devoTreePhases-1.0-3-1-0.25")

        assert config.growth == "tree"
        assert config.controller_step == 0.25

    def test_ca_mlp(self):
        """devoCAHomoMLP reads both network shapes."""
        config = Config.from_name("devoCAHomoMLP-0.5-2-3-0.8-1-4-1")

        assert (config.growth, config.controller) == ("ca", "mlp")
        assert (config.inner_layer_ratio, config.n_inner_layers, config.signals) == (0.5, 2, 3)
        assert (config.ca_inner_layer_ratio, config.ca_n_inner_layers) == (0.8, 1)
        assert (config.n_initial, config.n_step) == (4, 1)

    def test_conditioned_tree(self):
        """devoCondTreeHomoMLP reads the selection function and its order."""
        config = Config.from_name("devoCondTreeHomoMLP-0.65-1-1-areaRatioEnergy-f-5-1-0.2")

        assert config.selection == "areaRatioEnergy"
        assert config.condition_max_first is False
        assert config.controller_step == 0.2

        growth = config.build_growth()
        assert isinstance(growth, TreeGrowth)
        assert growth.condition is area_ratio_energy

    def test_conditioned_grid(self):
        """devoCondHomoMLP conditions direct grid growth."""
        config = Config.from_name("devoCondHomoMLP-0.65-1-1-areaRatio-t-4-2")

        assert (config.growth, config.controller) == ("grid", "mlp")
        assert config.selection == "areaRatio"
        assert config.condition_max_first is True
        assert (config.n_initial, config.n_step) == (4, 2)

        growth = config.build_growth()
        assert isinstance(growth, GridGrowth)
        assert growth.condition is area_ratio
        assert growth.condition_max_first

    def test_heterogeneous(self):
        """devoHeteroMLP carries one network per cell."""
        config = Config.from_name("devoHeteroMLP-0.65-1-1-5-1")
        assert config.heterogeneous

    def test_overrides(self):
        """Keyword overrides complete the named fields."""
        config = Config.from_name("devoHomoMLP-0.65-1-1-5-1", target="box-7x3")
        assert config.target == "box-7x3"

    def test_unknown_name(self):
        """Unknown descriptors are rejected."""
        with pytest.raises(ValueError, match="Unknown"):
            Config.from_name("devoRndHomoMLP-0.65-1-1-5-1")


class TestBuildMapper:
    """Tests for mapper construction."""

    @pytest.mark.parametrize(
        "growth,growth_type",
        [("grid", GridGrowth), ("ca", NeuralCAGrowth), ("tree", TreeGrowth)],
    )
    def test_growth(self, growth, growth_type):
        """Each growth name builds its strategy."""
        mapper = Config(growth=growth).build_mapper()

        assert isinstance(mapper, DevelopmentalMapper)
        assert isinstance(mapper.growth, growth_type)
        assert isinstance(mapper.controller, OscillatorControllerStrategy)

    def test_mlp(self):
        """Neural controllers carry the network shape."""
        mapper = Config(controller="mlp", signals=2, directional=False, n_step=4).build_mapper()

        assert isinstance(mapper.controller, DistributedControllerStrategy)
        assert mapper.controller.signals == 2
        assert not mapper.controller.directional
        assert mapper.n_step == 4
