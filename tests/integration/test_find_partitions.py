"""Integration Tests for find_partitions
======================================

End-to-end partition searches on small synthetic pattern functions.

Test Coverage:
- Discovery of every pattern of a two-region space
- Chains only ever hold points of their own pattern inside the bounds
- Overlapping chains of one pattern collapse to a single region
- One chain per region; separate regions of a pattern come from separate starts
- Iteration, time and region budgets
- Serial and threaded runs agree for a fixed seed
- Errors: invalid options and pattern-function exceptions
- Volume estimation and DataFrame export of a full run
"""

from collections import Counter

import numpy as np
import pytest

from parspace import Options, OptionsError, find_partitions


def _all_points(results):
    for chain in results.chains:
        for parms in chain.all_parms:
            yield chain, parms


class TestDiscovery:
    def test_finds_both_half_planes(self, half_plane_classifier, unit_square):
        options = Options(
            init_parms=[(0.45, 0.5)],
            bounds=unit_square,
            n_iters=200,
            dedup_interval=25,
            seed=11,
        )
        results = find_partitions(half_plane_classifier, options)

        assert set(results.patterns) == {"left", "right"}
        assert results.stop_reason == "n_iters"
        assert results.n_iters == 200

    @pytest.mark.parametrize("seed", range(10))
    def test_one_chain_per_half_plane(self, half_plane_classifier, unit_square, seed):
        options = Options(
            init_parms=[(0.45, 0.5)],
            bounds=unit_square,
            n_iters=300,
            dedup_interval=50,
            seed=seed,
        )
        results = find_partitions(half_plane_classifier, options)

        counts = Counter(chain.pattern for chain in results.chains)
        assert counts == {"left": 1, "right": 1}

    def test_separate_regions_from_separate_starts(self, unit_square):
        def classify(p):
            return "B" if 0.3 <= p[0] <= 0.7 else "A"

        options = Options(
            init_parms=[(0.1, 0.5), (0.9, 0.5)],
            bounds=unit_square,
            max_radius=0.1,
            n_iters=200,
            dedup_interval=50,
            seed=8,
        )
        results = find_partitions(classify, options)

        a_chains = results.get_chains("A")
        assert [c.chain_id for c in a_chains] == [0, 1]

    def test_points_match_chain_pattern(self, half_plane_classifier, base_options):
        results = find_partitions(half_plane_classifier, base_options)

        for chain, parms in _all_points(results):
            assert half_plane_classifier(parms) == chain.pattern
            assert np.all((parms >= 0.0) & (parms <= 1.0))

    def test_chain_sequences_stay_parallel(self, half_plane_classifier, base_options):
        results = find_partitions(half_plane_classifier, base_options)

        for chain in results.chains:
            assert len(chain.all_parms) == len(chain.acceptance) == len(chain.radii)
            assert chain.acceptance[0] is True

    def test_rejected_steps_repeat_previous_point(self, half_plane_classifier, base_options):
        results = find_partitions(half_plane_classifier, base_options)

        chain = results.chains[0]
        for i in range(1, chain.n_samples):
            if not chain.acceptance[i]:
                np.testing.assert_array_equal(chain.all_parms[i], chain.all_parms[i - 1])

    def test_single_pattern_collapses(self, single_pattern_classifier, unit_square):
        options = Options(
            init_parms=[(0.2, 0.5), (0.3, 0.5)],
            bounds=unit_square,
            max_radius=0.3,
            n_iters=200,
            dedup_interval=50,
            seed=3,
        )
        results = find_partitions(single_pattern_classifier, options)

        assert results.n_regions == 1
        assert results.chains[0].chain_id == 0
        assert results.patterns == ["A"]

    def test_array_patterns(self, unit_square):
        def classify(p):
            return np.array([p[0] < 0.5, p[1] < 0.5], dtype=int)

        options = Options(
            init_parms=[(0.45, 0.45)],
            bounds=unit_square,
            n_iters=150,
            dedup_interval=50,
            seed=5,
        )
        results = find_partitions(classify, options)

        assert (1, 1) in results.patterns
        assert all(isinstance(p, tuple) for p in results.patterns)

    def test_extra_arguments_forwarded(self, unit_square):
        def classify(p, threshold, low="below", high="above"):
            return low if p[0] < threshold else high

        options = Options(init_parms=[(0.5, 0.5)], bounds=unit_square, n_iters=20, seed=1)
        results = find_partitions(classify, options, 0.3, low="L", high="H")

        assert results.chains[0].pattern == "H"
        assert set(results.patterns) <= {"L", "H"}


class TestBudgets:
    def test_max_time_zero_stops_after_one_iteration(
        self, half_plane_classifier, base_options
    ):
        options = Options.from_dict({**base_options.to_dict(), "max_time": 0})
        results = find_partitions(half_plane_classifier, options)

        assert results.stop_reason == "max_time"
        assert results.n_iters == 1

    def test_max_regions(self, single_pattern_classifier, unit_square):
        options = Options(
            init_parms=[(0.5, 0.5)],
            bounds=unit_square,
            n_iters=1000,
            dedup_interval=10,
            max_regions=1,
            seed=2,
        )
        results = find_partitions(single_pattern_classifier, options)

        assert results.stop_reason == "max_regions"
        assert results.n_iters == 10

    def test_fixed_radius(self, half_plane_classifier, base_options):
        options = Options.from_dict({**base_options.to_dict(), "adapt_radius": "none"})
        results = find_partitions(half_plane_classifier, options)

        for chain in results.chains:
            assert set(chain.radii) == {0.1}

    def test_custom_adaptation_policy(self, single_pattern_classifier, unit_square):
        calls = []

        def policy(chain, options):
            calls.append(chain.chain_id)
            chain.radius = 0.05

        options = Options(
            init_parms=[(0.5, 0.5)],
            bounds=unit_square,
            n_iters=30,
            adapt_radius=policy,
            seed=4,
        )
        results = find_partitions(single_pattern_classifier, options)

        assert len(calls) == 30
        assert results.chains[0].radii[2:] == [0.05] * 29


class TestDeterminism:
    def _run(self, classify, base_options, **overrides):
        options = Options.from_dict({**base_options.to_dict(), **overrides})
        return find_partitions(classify, options)

    def test_same_seed_same_chains(self, half_plane_classifier, base_options):
        first = self._run(half_plane_classifier, base_options)
        second = self._run(half_plane_classifier, base_options)

        assert [c.chain_id for c in first.chains] == [c.chain_id for c in second.chains]
        for a, b in zip(first.chains, second.chains):
            np.testing.assert_array_equal(a.to_matrix(), b.to_matrix())

    def test_parallel_matches_serial(self, half_plane_classifier, base_options):
        serial = self._run(half_plane_classifier, base_options)
        parallel = self._run(
            half_plane_classifier, base_options, parallel=True, n_workers=4
        )

        assert [c.chain_id for c in serial.chains] == [c.chain_id for c in parallel.chains]
        for a, b in zip(serial.chains, parallel.chains):
            assert a.pattern == b.pattern
            assert a.acceptance == b.acceptance
            np.testing.assert_array_equal(a.to_matrix(), b.to_matrix())


class TestErrors:
    def test_invalid_options_raise_before_classifying(self):
        def classify(p):
            raise AssertionError("pattern function must not be called")

        with pytest.raises(OptionsError) as excinfo:
            find_partitions(classify, Options(radius=-1.0))

        messages = " ".join(excinfo.value.errors)
        assert "at least one starting point" in messages
        assert "radius must be positive" in messages

    @pytest.mark.parametrize("parallel", [False, True])
    def test_classify_exception_propagates(self, unit_square, parallel):
        class ModelFailure(RuntimeError):
            pass

        def classify(p):
            if p[0] > 0.7:
                raise ModelFailure("model diverged")
            return "A"

        options = Options(
            init_parms=[(0.65, 0.5)],
            bounds=unit_square,
            n_iters=500,
            parallel=parallel,
            seed=9,
        )
        with pytest.raises(ModelFailure, match="model diverged"):
            find_partitions(classify, options)


class TestVolumes:
    def test_estimate_volumes(self, half_plane_classifier, unit_square):
        options = Options(
            init_parms=[(0.25, 0.5), (0.75, 0.5)],
            bounds=unit_square,
            n_iters=300,
            dedup_interval=50,
            seed=13,
        )
        results = find_partitions(
            half_plane_classifier, options, estimate_volumes=True, n_sim=2000
        )

        assert 0 in results.volumes and 1 in results.volumes
        for chain_id, estimate in results.volumes.items():
            assert chain_id in {c.chain_id for c in results.chains}
            assert 0.0 < estimate.volume < 1.0
            assert estimate.corrected_volume >= estimate.volume

        df = results.to_dataframe(parm_names=["x", "y"])
        assert {"x", "y", "volume", "corrected_volume"} <= set(df.columns)
        assert len(df) == sum(c.n_samples for c in results.chains)
