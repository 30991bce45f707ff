"""
Random substitution for packet-selection trials.

Goal:
- Perturb the best-known selection by a percentage of its members.
- Draw replacements only from material not already selected.
- Stay within the dictionary pool's byte ceiling.

Every trial owns a random.Random seeded from (seed, generation, trial), so
the draws do not depend on evaluation order or thread scheduling.

Public API:
- randomness_for_generation(cfg, generation) -> float
- trial_rng(seed, generation, trial) -> random.Random
- mutate_selection(base, material_sizes, randomness=..., rng=..., capacity=...) -> tuple
"""

from __future__ import annotations

import random
from typing import List, Optional, Sequence, Tuple

from ..config import TrialConfig


def randomness_for_generation(cfg: TrialConfig, generation: int) -> float:
    """
    Percent randomness for a 1-based generation.

    Decays geometrically from `trial_randomness` by `randomness_decay` per
    generation and never goes below `min_trial_randomness` (unless the base
    randomness itself is zero).
    """
    base = float(cfg.trial_randomness)
    if base <= 0.0:
        return 0.0
    value = base * (cfg.randomness_decay ** max(0, generation - 1))
    return max(value, min(cfg.min_trial_randomness, base))


def trial_rng(seed: int, generation: int, trial: int) -> random.Random:
    """Independent, reproducible generator for one trial."""
    return random.Random(f"{seed}:{generation}:{trial}")


def mutate_selection(
    base: Sequence[int],
    material_sizes: Sequence[int],
    *,
    randomness: float,
    rng: random.Random,
    capacity: Optional[int] = None,
) -> Tuple[int, ...]:
    """
    Replace `randomness` percent of `base` with unselected material.

    Parameters
    ----------
    base : sequence of int
        Current selection (indices into the material).
    material_sizes : sequence of int
        Byte size of every material packet, by index.
    randomness : float
        Percent of the selection to replace; at least one member when > 0.
    rng : random.Random
        Trial-local generator.
    capacity : int, optional
        Byte ceiling for the resulting selection. Replacements that would
        break it are skipped.

    Returns
    -------
    tuple of int
        Sorted, non-empty selection. If too little material is available the
        selection shrinks instead of growing.
    """
    members = sorted(base)
    if not members or randomness <= 0.0:
        return tuple(members)

    n = max(1, int(round(len(members) * randomness / 100.0)))
    n = min(n, len(members))

    dropped = set(rng.sample(range(len(members)), n))
    kept: List[int] = [idx for pos, idx in enumerate(members) if pos not in dropped]

    selected = set(members)
    available = [i for i in range(len(material_sizes)) if i not in selected]
    drawn = rng.sample(available, min(n, len(available)))

    total = sum(material_sizes[i] for i in kept)
    for i in drawn:
        if capacity is not None and total + material_sizes[i] > capacity:
            continue
        kept.append(i)
        total += material_sizes[i]

    if not kept:
        return tuple(members)
    return tuple(sorted(kept))
