"""
Closed-form trigonometric noise used for terrain seeding and density variation.

These are not gradient noises: every function is a fixed sum of sines and
cosines, so results depend only on the coordinates passed in.
"""

import numpy as np

# Density noise constants. Frequencies are incommensurate so the pattern does
# not line up with the density grid axes.
_BASE_FREQ_A = (37.2, 91.7)
_BASE_FREQ_B = (21.1, -47.0)
_MICRO_FREQ_A = (173.3, 269.1)
_MICRO_FREQ_B = (311.7, -127.9)
_MICRO_PHASE = 1.618
MICRO_AMPLITUDE = 0.08


def simple_noise(x: np.ndarray, y: np.ndarray, frequency: float) -> np.ndarray:
    """
    Heightfield seeding noise.

    sin(x·f)·0.6 + cos(y·f·0.8)·0.4 + sin(x·f·0.35 + y·f·0.15)·0.8

    Returns values in [-1.8, 1.8].
    """
    nx = np.asarray(x, dtype=np.float64) * frequency
    ny = np.asarray(y, dtype=np.float64) * frequency
    return (
        np.sin(nx) * 0.6
        + np.cos(ny * 0.8) * 0.4
        + np.sin(nx * 0.35 + ny * 0.15) * 0.8
    )


def noise2d(u: np.ndarray, v: np.ndarray) -> np.ndarray:
    """Low-frequency density variation in [0, 1]."""
    u = np.asarray(u, dtype=np.float64)
    v = np.asarray(v, dtype=np.float64)
    return (
        0.5
        + 0.25 * np.sin(u * _BASE_FREQ_A[0] + v * _BASE_FREQ_A[1])
        + 0.25 * np.cos(u * _BASE_FREQ_B[0] + v * _BASE_FREQ_B[1])
    )


def micro_noise(u: np.ndarray, v: np.ndarray) -> np.ndarray:
    """High-frequency density detail in [-MICRO_AMPLITUDE, MICRO_AMPLITUDE]."""
    u = np.asarray(u, dtype=np.float64)
    v = np.asarray(v, dtype=np.float64)
    return MICRO_AMPLITUDE * (
        np.sin(u * _MICRO_FREQ_A[0] + v * _MICRO_FREQ_A[1] + _MICRO_PHASE)
        * np.cos(u * _MICRO_FREQ_B[0] + v * _MICRO_FREQ_B[1])
    )
