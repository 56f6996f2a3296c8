from __future__ import annotations
from typing import List, Optional, Union

import numpy as np

SeedLike = Optional[Union[int, np.random.SeedSequence, np.random.Generator]]


def as_seed_sequence(seed: SeedLike) -> np.random.SeedSequence:
    """
    A SeedSequence that ``SeedSequence(ss.entropy, spawn_key=ss.spawn_key)`` rebuilds exactly.

    None draws fresh OS entropy, which is then recorded in ``entropy``. A
    Generator contributes one spawned child, so repeated calls on the same
    Generator give different, still reproducible, sequences.
    """
    if isinstance(seed, np.random.Generator):
        return seed.bit_generator.seed_seq.spawn(1)[0]
    if isinstance(seed, np.random.SeedSequence):
        # a fresh copy, independent of how many children the caller already spawned
        return np.random.SeedSequence(seed.entropy, spawn_key=seed.spawn_key)
    return np.random.SeedSequence(seed)


def spawn_generators(seed: SeedLike, n: int) -> List[np.random.Generator]:
    """
    Independent generators for ``n`` restarts or permutations.

    Children are spawned from one SeedSequence, so generator ``i`` is the same
    whether the work runs sequentially or on a worker pool.
    """
    if isinstance(seed, np.random.Generator):
        return list(seed.spawn(n))
    ss = seed if isinstance(seed, np.random.SeedSequence) else np.random.SeedSequence(seed)
    return [np.random.default_rng(child) for child in ss.spawn(n)]
