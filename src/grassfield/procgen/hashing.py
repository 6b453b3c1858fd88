"""
Procedural hash for per-instance attributes.

Placement code only ever calls a HashFunction, so the trigonometric hash can
be replaced without touching the placer.
"""

from typing import Callable, Union

import numpy as np

ArrayLike = Union[float, np.ndarray]

# (x, y, seed) -> value in [0, 1)
HashFunction = Callable[[ArrayLike, ArrayLike, ArrayLike], np.ndarray]


def trig_hash(x: ArrayLike, y: ArrayLike, seed: ArrayLike) -> np.ndarray:
    """frac(sin(x·12.9898 + y·78.233 + seed·43758.5453) · 43758.5453)"""
    x = np.asarray(x, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)
    seed = np.asarray(seed, dtype=np.float64)
    s = np.sin(x * 12.9898 + y * 78.233 + seed * 43758.5453) * 43758.5453
    h = s - np.floor(s)
    # frac of a tiny negative number rounds up to exactly 1.0
    return np.where(h >= 1.0, 0.0, h)
