import numpy as np
import pandas as pd
import pytest


@pytest.fixture
def env():
    rng = np.random.default_rng(42)
    return pd.DataFrame(rng.normal(size=(15, 5)),
                        index=[f"S{i:02d}" for i in range(15)],
                        columns=["depth", "temp", "sal", "o2", "ph"])


@pytest.fixture
def taxa(env):
    # community driven by depth and salinity
    rng = np.random.default_rng(7)
    d, s = env["depth"].to_numpy(), env["sal"].to_numpy()
    base = np.exp(np.column_stack([d, -d, s, -s, 0.5 * (d + s)]))
    counts = rng.poisson(5 * base) + 1
    return pd.DataFrame(counts.astype(float), index=env.index,
                        columns=[f"taxon{i}" for i in range(5)])


@pytest.fixture
def wide_env():
    rng = np.random.default_rng(3)
    return pd.DataFrame(rng.normal(size=(14, 8)),
                        index=[f"S{i:02d}" for i in range(14)],
                        columns=[f"v{i}" for i in range(8)])


@pytest.fixture
def wide_taxa(wide_env):
    rng = np.random.default_rng(11)
    x = wide_env.to_numpy()
    base = np.exp(np.column_stack([x[:, 0], -x[:, 3], x[:, 5], x[:, 0] - x[:, 3]]))
    return pd.DataFrame((rng.poisson(4 * base) + 1).astype(float), index=wide_env.index,
                        columns=["a", "b", "c", "d"])
