import logging

import numpy as np
import pytest

from ecobest.config import (
    AnalysisConfig,
    BVStepParams,
    PermutationParams,
    load_analysis_config,
    setup_logging,
)
from ecobest.exceptions import ConstraintConflict, InvalidParameter
from ecobest.significance.global_test import global_best_from_config, load_config_matrices


def _write(tmp_path, text):
    path = tmp_path / "analysis.yaml"
    path.write_text(text)
    return path


def test_defaults():
    cfg = AnalysisConfig()
    assert cfg.method == "bvstep"
    assert cfg.fix_index == "bray"
    assert cfg.bvstep.max_rho == 0.95
    assert cfg.bvstep.num_restarts == 10
    assert cfg.permutation.permutations == 999
    assert BVStepParams(random_selection=False).effective_restarts == 1


def test_load_yaml_with_dotted_keys(tmp_path):
    path = _write(tmp_path, """
method: bvstep
fix_index: bray
seed: 3
fix_path: data/taxa.csv
bvstep:
  max.rho: 0.9
  num.restarts: 4
  var.exclude: [0, 2]
permutation:
  permutations: 99
  data_type: prab
""")
    cfg = load_analysis_config(path)
    assert cfg.seed == 3
    assert cfg.bvstep.max_rho == 0.9
    assert cfg.bvstep.num_restarts == 4
    assert cfg.bvstep.var_exclude == (0, 2)
    assert cfg.permutation == PermutationParams(permutations=99, data_type="prab")
    assert cfg.fix_path == tmp_path / "data" / "taxa.csv"


def test_unknown_keys_and_bad_values(tmp_path):
    with pytest.raises(InvalidParameter):
        load_analysis_config(_write(tmp_path, "bvstep: {max_rhoo: 0.9}\n"))
    with pytest.raises(InvalidParameter):
        load_analysis_config(_write(tmp_path, "method: mantel\n"))
    with pytest.raises(ConstraintConflict):
        load_analysis_config(_write(tmp_path, "bvstep: {var_always_include: [1], var_exclude: [1]}\n"))
    with pytest.raises(FileNotFoundError):
        load_analysis_config(tmp_path / "missing.yaml")


def test_run_from_config_files(tmp_path, taxa, env):
    taxa.rename_axis("site").to_csv(tmp_path / "taxa.csv")
    env.rename_axis("site").to_csv(tmp_path / "env.csv")
    path = _write(tmp_path, """
method: bioenv
seed: 1
index_col: site
fix_path: taxa.csv
var_path: env.csv
bioenv: {upto: 1}
permutation: {permutations: 3}
""")
    res = global_best_from_config(load_analysis_config(path))
    assert len(res.null) == 3
    assert res.observed.column_names == tuple(env.columns)


def test_config_without_matrices():
    with pytest.raises(InvalidParameter):
        global_best_from_config(AnalysisConfig())


def test_package_logger_is_silent_by_default():
    import ecobest

    handlers = logging.getLogger(ecobest.__name__).handlers
    assert any(isinstance(h, logging.NullHandler) for h in handlers)
    setup_logging("DEBUG")


def test_missing_values_handled_from_config(tmp_path, taxa, env):
    env = env.copy()
    env.iloc[3, 1] = np.nan
    taxa.rename_axis("site").to_csv(tmp_path / "taxa.csv")
    env.rename_axis("site").to_csv(tmp_path / "env.csv")
    path = _write(tmp_path, """
method: bioenv
seed: 2
index_col: site
missing: drop_rows_if_any
fix_path: taxa.csv
var_path: env.csv
bioenv: {upto: 1}
permutation: {permutations: 2}
""")
    cfg = load_analysis_config(path)
    fix_mat, var_mat = load_config_matrices(cfg)
    assert fix_mat.shape[0] == var_mat.shape[0] == taxa.shape[0] - 1
    assert env.index[3] not in var_mat.index
    assert len(global_best_from_config(cfg).null) == 2


def test_unknown_missing_strategy(tmp_path):
    with pytest.raises(InvalidParameter):
        load_analysis_config(_write(tmp_path, "missing: interpolate\n"))


def test_only_the_results_directory_is_configured():
    from ecobest import config

    assert config.RESULTS == config.ROOT / "results"
    assert not any(hasattr(config, name) for name in ("DATA", "RAW", "PROC"))
