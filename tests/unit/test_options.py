"""Unit Tests for Sampler Options
===============================

Test Coverage:
- Defaults and normalisation to immutable tuples
- Validation messages for each rule
- raise_if_invalid aggregates every problem
- Flat and sectioned from_dict, to_dict round trip
- YAML loading with and without the partitions section
"""

import dataclasses

import pytest

from parspace.config.options import Options
from parspace.core.exceptions import OptionsError


def _valid(**overrides):
    base = dict(init_parms=[(0.5, 0.5)], bounds=[(0, 1), (0, 1)])
    base.update(overrides)
    return Options(**base)


class TestOptionsDefaults:
    def test_defaults_are_valid(self):
        options = _valid()
        assert options.is_valid()
        assert options.max_merge == 1
        assert options.scale == 2.0
        assert options.adapt_radius == "adapt"

    def test_nested_lists_become_tuples(self):
        options = _valid()
        assert options.init_parms == ((0.5, 0.5),)
        assert options.bounds == ((0.0, 1.0), (0.0, 1.0))
        hash(options.init_parms)

    def test_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            _valid().max_merge = 3

    def test_n_dims(self):
        assert _valid().n_dims == 2
        assert Options(bounds=[(0, 1)] * 3).n_dims == 3
        assert Options().n_dims == 0


class TestOptionsValidation:
    @pytest.mark.parametrize(
        "overrides, fragment",
        [
            ({"init_parms": []}, "at least one starting point"),
            ({"init_parms": [(0.1, 0.1), (0.1,)], "bounds": None}, "same dimension"),
            ({"bounds": [(0, 1)]}, "one (low, high) pair per dimension"),
            ({"bounds": [(1, 0), (0, 1)]}, "low < high"),
            ({"init_parms": [(1.5, 0.5)]}, "outside bounds"),
            ({"radius": 0}, "radius must be positive"),
            ({"min_radius": 0.5, "max_radius": 0.1}, "min_radius <= max_radius"),
            ({"target_rate": 1.0}, "target_rate"),
            ({"adapt_interval": 0}, "adapt_interval"),
            ({"kappa": -1}, "kappa"),
            ({"adapt_radius": "sometimes"}, "adapt_radius"),
            ({"max_merge": -1}, "max_merge"),
            ({"max_merge": 1.5}, "max_merge"),
            ({"scale": 0}, "scale must be positive"),
            ({"dedup_interval": 0}, "dedup_interval"),
            ({"n_iters": 0}, "n_iters"),
            ({"max_time": -1.0}, "max_time"),
            ({"max_regions": 0}, "max_regions"),
            ({"n_workers": 0}, "n_workers"),
        ],
    )
    def test_invalid_values(self, overrides, fragment):
        errors = _valid(**overrides).validate()
        assert any(fragment in e for e in errors), errors

    @pytest.mark.parametrize(
        "kwargs, fragment",
        [
            ({"init_parms": [(0.5,)], "bounds": (0.0, 1.0)}, "sequence of (low, high) pairs"),
            ({"init_parms": [0.5]}, "sequence of parameter vectors"),
            ({"init_parms": "0.5, 0.5"}, "sequence of parameter vectors"),
            ({"init_parms": [("a", "b")]}, "sequence of parameter vectors"),
        ],
    )
    def test_malformed_shapes_reported(self, kwargs, fragment):
        options = Options(**kwargs)

        errors = options.validate()
        assert any(fragment in e for e in errors), errors
        assert not any("at least one starting point" in e for e in errors)
        with pytest.raises(OptionsError):
            options.raise_if_invalid()

    def test_malformed_shapes_from_dict(self):
        options = Options.from_dict({"init_parms": [0.5], "bounds": [0.0, 1.0]})
        assert len(options.validate()) == 2

    def test_raise_if_invalid_lists_all_errors(self):
        options = _valid(max_merge=-1, scale=-2.0)
        with pytest.raises(OptionsError) as excinfo:
            options.raise_if_invalid()
        assert len(excinfo.value.errors) == 2
        assert isinstance(excinfo.value, ValueError)

    def test_callable_policy_is_valid(self):
        assert _valid(adapt_radius=lambda chain, options: None).is_valid()

    def test_unbounded_is_valid(self):
        assert _valid(bounds=None, init_parms=[(10.0, -3.0)]).is_valid()


class TestOptionsFromDict:
    def test_flat_keys(self):
        options = Options.from_dict(
            {"init_parms": [[0.2, 0.3]], "max_merge": 4, "n_iters": 50}
        )
        assert options.max_merge == 4
        assert options.n_iters == 50

    def test_sections(self):
        options = Options.from_dict(
            {
                "init_parms": [[0.2, 0.3]],
                "bounds": [[0, 1], [0, 1]],
                "proposal": {"radius": 0.05},
                "adaptation": {"policy": "none", "target_rate": 0.3},
                "deduplication": {"max_merge": 0, "dedup_interval": 20},
                "budget": {"n_iters": 200, "max_time": 5},
                "execution": {"parallel": True, "n_workers": 2, "seed": 11},
            }
        )
        assert options.radius == 0.05
        assert options.adapt_radius == "none"
        assert options.target_rate == 0.3
        assert options.max_merge == 0
        assert options.dedup_interval == 20
        assert options.n_iters == 200
        assert options.max_time == 5
        assert options.parallel is True
        assert options.n_workers == 2
        assert options.seed == 11

    def test_flat_key_overrides_section(self):
        options = Options.from_dict(
            {"init_parms": [[0.0]], "max_merge": 2, "deduplication": {"max_merge": 5}}
        )
        assert options.max_merge == 2

    def test_unknown_keys_warn(self, caplog):
        with caplog.at_level("WARNING", logger="parspace"):
            Options.from_dict({"init_parms": [[0.0]], "colour": "red"})
        assert any("colour" in r.getMessage() for r in caplog.records)

    def test_invalid_values_warn(self, caplog):
        with caplog.at_level("WARNING", logger="parspace"):
            options = Options.from_dict({"init_parms": [[0.0]], "scale": -1})
        assert not options.is_valid()
        assert any("scale" in r.getMessage() for r in caplog.records)

    def test_round_trip(self):
        options = _valid(max_merge=3, seed=5, max_regions=4, adapt_radius="none")
        assert Options.from_dict(options.to_dict()) == options


class TestOptionsFromYaml:
    def test_partitions_section(self, tmp_path):
        path = tmp_path / "options.yaml"
        path.write_text(
            """
partitions:
  init_parms: [[0.2, 0.5], [0.8, 0.5]]
  bounds: [[0, 1], [0, 1]]
  deduplication:
    max_merge: 2
    scale: 2.5
  budget:
    n_iters: 300
"""
        )
        options = Options.from_yaml(path)

        assert options.init_parms == ((0.2, 0.5), (0.8, 0.5))
        assert options.max_merge == 2
        assert options.scale == 2.5
        assert options.n_iters == 300
        assert options.is_valid()

    def test_top_level(self, tmp_path):
        path = tmp_path / "options.yml"
        path.write_text("init_parms: [[0.1]]\nradius: 0.02\n")
        assert Options.from_yaml(path).radius == 0.02

    def test_non_mapping_rejected(self, tmp_path):
        path = tmp_path / "options.yaml"
        path.write_text("- 1\n- 2\n")
        with pytest.raises(OptionsError, match="mapping"):
            Options.from_yaml(path)
