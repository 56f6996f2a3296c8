import numpy as np
import pandas as pd
import pytest

from ecobest.config import BVStepParams
from ecobest.exceptions import ConstraintConflict, InvalidParameter, RowCountMismatch
from ecobest.matching.bioenv import bio_env
from ecobest.matching.bvstep import StepwiseMatcher, _run_restart, bv_step
from ecobest.matching.dissimilarity import target_distance
from ecobest.matching.subsets import SubsetEvaluator, VariableSubset


def test_always_include_and_exclude_are_respected(wide_taxa, wide_env):
    res = bv_step(wide_taxa, wide_env, var_always_include=[2, 5], var_exclude=[1], seed=1)
    for item in res.order_by_best + res.order_by_i_comb:
        assert 2 in item.subset and 5 in item.subset
        assert 1 not in item.subset
    for trace in res.meta["restarts"]:
        for state in trace.history:
            assert {2, 5} <= set(state.subset) and 1 not in state.subset
    assert 1 in res.var_exclude
    assert res.var_always_include == (2, 5)


def test_row_count_mismatch_before_any_search(monkeypatch):
    def boom(*args, **kwargs):
        raise AssertionError("no subset should be scored")

    monkeypatch.setattr(SubsetEvaluator, "score", boom)
    with pytest.raises(RowCountMismatch):
        bv_step(np.ones((10, 3)), np.ones((12, 4)))

    rng = np.random.default_rng(0)
    target = target_distance(pd.DataFrame(rng.random((10, 3))), "bray")
    with pytest.raises(RowCountMismatch):
        StepwiseMatcher().search(target, rng.random((12, 4)))


def test_single_fixed_restart_is_deterministic(wide_taxa, wide_env):
    kw = dict(random_selection=False, num_restarts=1)
    a = bv_step(wide_taxa, wide_env, seed=1, **kw)
    b = bv_step(wide_taxa, wide_env, seed=99, **kw)
    pd.testing.assert_frame_equal(a.to_frame(), b.to_frame())
    assert len(a.meta["restarts"]) == 1


def test_fixed_pool_ignores_num_restarts(wide_taxa, wide_env):
    res = bv_step(wide_taxa, wide_env, random_selection=False, num_restarts=5)
    assert len(res.meta["restarts"]) == 1


def test_same_seed_same_result_sequential_or_threaded(wide_taxa, wide_env):
    a = bv_step(wide_taxa, wide_env, seed=5, num_restarts=6)
    b = bv_step(wide_taxa, wide_env, seed=5, num_restarts=6)
    c = bv_step(wide_taxa, wide_env, seed=5, num_restarts=6, n_jobs=2)
    pd.testing.assert_frame_equal(a.to_frame(), b.to_frame())
    pd.testing.assert_frame_equal(a.to_frame(), c.to_frame())


def test_never_beats_exhaustive_search(wide_taxa, wide_env):
    exhaustive = bio_env(wide_taxa, wide_env)
    stepwise = bv_step(wide_taxa, wide_env, seed=2, prop_selected_var=0.5)
    assert stepwise.best_model_rho <= exhaustive.best_model_rho + 1e-12


def test_ranked_output_is_distinct_and_sorted(wide_taxa, wide_env):
    res = bv_step(wide_taxa, wide_env, seed=3, output_best=5)
    subsets = [s.subset for s in res.order_by_best]
    assert len(subsets) == len(set(subsets)) <= 5
    scores = [s.score for s in res.order_by_best]
    assert scores == sorted(scores, reverse=True)
    sizes = [s.n_var for s in res.order_by_i_comb]
    assert sizes == sorted(set(sizes))


def test_restart_traces_record_termination(wide_taxa, wide_env):
    res = bv_step(wide_taxa, wide_env, seed=4, num_restarts=3)
    reasons = {"max_rho", "min_delta_rho", "pool_exhausted", "local_optimum"}
    assert len(res.meta["restarts"]) == 3
    for trace in res.meta["restarts"]:
        assert trace.termination in reasons
        assert len(trace.history) >= 1
        assert set(trace.history[-1].subset) <= set(trace.pool)


def test_constraint_conflict():
    with pytest.raises(ConstraintConflict) as err:
        BVStepParams(var_always_include=[0, 3], var_exclude=[3])
    assert err.value.overlap == (3,)


@pytest.mark.parametrize("kwargs", [
    {"max_rho": 1.5},
    {"max_rho": 0.0},
    {"min_delta_rho": 0.0},
    {"prop_selected_var": 0.0},
    {"num_restarts": 0},
    {"output_best": 0},
    {"var_exclude": [-1]},
])
def test_out_of_range_parameters(kwargs):
    with pytest.raises(InvalidParameter):
        BVStepParams(**kwargs)


def test_constraints_outside_the_matrix(wide_taxa, wide_env):
    with pytest.raises(InvalidParameter):
        bv_step(wide_taxa, wide_env, var_always_include=[8])
    with pytest.raises(InvalidParameter):
        bv_step(wide_taxa, wide_env, var_exclude=list(range(8)))


# ---------------- restart state machine on hand-built score tables ----------------

class _TableEvaluator:
    """Scores looked up by column tuple; unknown subsets score 0."""

    def __init__(self, table, n_variables=None):
        self.table = table
        self.n_variables = n_variables
        self.calls = []

    def score(self, subset):
        self.calls.append(subset.columns)
        return self.table.get(subset.columns, 0.0)


def _history(trace):
    return [(s.subset.columns, s.direction, s.score) for s in trace.history]


def test_backward_step_becomes_running_best():
    table = {(0,): 0.5, (1,): 0.3, (2,): 0.2,
             (0, 1): 0.6, (0, 2): 0.55, (1, 2): 0.75, (0, 1, 2): 0.7}
    trace = _run_restart(_TableEvaluator(table), VariableSubset((0, 1, 2)),
                         VariableSubset(), BVStepParams())
    assert _history(trace) == [
        ((0,), "F", 0.5),
        ((0, 1), "F", 0.6),
        ((0, 1, 2), "F", 0.7),
        ((1, 2), "B", 0.75),
        ((1,), "B", 0.3),
        ((0, 1, 2), "F", 0.7),
    ]
    assert trace.termination == "local_optimum"


@pytest.mark.parametrize("table, pool, params, expected, reason", [
    # best score reaches max_rho
    ({(0,): 0.95, (1,): 0.1}, (0, 1), {"max_rho": 0.9},
     [((0,), "F", 0.95)], "max_rho"),
    # a forward tie is not an improvement
    ({(0,): 0.5, (1,): 0.2, (0, 1): 0.5}, (0, 1), {},
     [((0,), "F", 0.5), ((0, 1), "F", 0.5)], "local_optimum"),
    # last improvement too small
    ({(0,): 0.5, (1,): 0.2, (0, 1): 0.5005}, (0, 1), {"min_delta_rho": 0.001},
     [((0,), "F", 0.5), ((0, 1), "F", 0.5005), ((0,), "B", 0.5)], "min_delta_rho"),
    # nothing left to add
    ({(0,): 0.3}, (0,), {},
     [((0,), "F", 0.3)], "pool_exhausted"),
])
def test_restart_termination(table, pool, params, expected, reason):
    trace = _run_restart(_TableEvaluator(table), VariableSubset(pool),
                         VariableSubset(), BVStepParams(**params))
    assert _history(trace) == expected
    assert trace.termination == reason


def test_restart_starts_from_always_include_and_never_drops_it():
    table = {(0,): 0.4, (0, 1): 0.6, (0, 2): 0.5, (0, 1, 2): 0.55}
    ev = _TableEvaluator(table)
    trace = _run_restart(ev, VariableSubset((0, 1, 2)), VariableSubset((0,)),
                         BVStepParams(var_always_include=[0]))
    assert _history(trace)[0] == ((0,), "F", 0.4)
    assert _history(trace)[1] == ((0, 1), "F", 0.6)
    assert trace.termination == "local_optimum"
    assert all(0 in cols for cols in ev.calls)


# ---------------- pruning ----------------

def test_prune_drops_variables_that_barely_move_the_score():
    table = {(0, 1, 2, 3): 0.8,
             (1, 2, 3): 0.5,      # dropping 0 matters
             (0, 2, 3): 0.8,      # dropping 1 changes nothing
             (0, 1, 3): 0.7995,   # dropping 2 changes less than min_delta_rho
             (0, 1, 2): 0.6}      # dropping 3 matters
    pruned, info = StepwiseMatcher()._prune(_TableEvaluator(table, n_variables=4))
    assert pruned == (1, 2)
    assert info["full_set_rho"] == 0.8

    pruned, info = StepwiseMatcher(var_always_include=[1])._prune(_TableEvaluator(table, n_variables=4))
    assert pruned == (2,)
    assert 1 not in info["drop_one_rho"]


def test_prune_full_set_leaves_out_user_exclusions():
    ev = _TableEvaluator({(0, 1, 2): 0.7, (1, 2): 0.2, (0, 2): 0.7, (0, 1): 0.3}, n_variables=4)
    pruned, _ = StepwiseMatcher(var_exclude=[3])._prune(ev)
    assert pruned == (1,)
    assert all(3 not in cols for cols in ev.calls)


def test_constant_variable_is_pruned(wide_taxa, wide_env):
    env = wide_env.assign(flat=1.0)
    flat = env.columns.get_loc("flat")
    res = bv_step(wide_taxa, env, seed=0)
    assert flat in res.meta["pruned"]
    assert flat in res.var_exclude
    assert all(flat not in s.subset for s in res.order_by_best)

    kept = bv_step(wide_taxa, env, seed=0, var_always_include=[flat])
    assert flat not in kept.meta["pruned"]


# ---------------- constraints hold for every evaluated subset ----------------

def test_excluded_variable_is_never_evaluated(monkeypatch, wide_taxa, wide_env):
    original = SubsetEvaluator.score
    evaluated = []

    def recording(self, subset):
        evaluated.append(subset)
        return original(self, subset)

    monkeypatch.setattr(SubsetEvaluator, "score", recording)
    bv_step(wide_taxa, wide_env, var_always_include=[2, 5], var_exclude=[1], seed=1)
    assert evaluated
    assert all(1 not in s for s in evaluated)
    assert all(2 in s and 5 in s for s in evaluated)


# ---------------- candidate pool size ----------------

@pytest.mark.parametrize("prop, k, expected", [(0.29, 100, 29), (0.2, 8, 1), (0.5, 8, 4), (0.01, 8, 1)])
def test_pool_size_is_floor_of_proportion(prop, k, expected):
    pool = StepwiseMatcher(prop_selected_var=prop)._pool(list(range(k)), k, np.random.default_rng(0))
    assert len(pool) == expected


def test_pool_adds_always_include_on_top():
    pool = StepwiseMatcher(prop_selected_var=0.2, var_always_include=[0, 1])._pool(
        list(range(10)), 10, np.random.default_rng(0))
    assert len(pool) == 4
    assert 0 in pool and 1 in pool
