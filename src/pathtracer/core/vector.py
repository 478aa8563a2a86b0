"""Python-side vector helpers used while building scenes and cameras.

Kernels work with ``taichi.math.vec3``; the construction code that fills the
Taichi fields works with NumPy arrays. Degenerate input (zero-length or
non-finite vectors) is rejected here, at construction time, so that nothing
downstream ever normalizes a zero vector inside a kernel.
"""

from collections.abc import Sequence

import numpy as np
import numpy.typing as npt

Vector3Like = Sequence[float] | npt.NDArray[np.floating]


def as_vector(values: Vector3Like, name: str = "vector") -> npt.NDArray[np.float64]:
    """Convert a 3-sequence to a float64 NumPy vector.

    Args:
        values: Any sequence of three numbers.
        name: Name used in error messages.

    Returns:
        A NumPy array of shape (3,).

    Raises:
        ValueError: If the input does not have three finite components.
    """
    vec = np.asarray(values, dtype=np.float64)
    if vec.shape != (3,):
        raise ValueError(f"{name} must have exactly 3 components, got shape {vec.shape}")
    if not np.all(np.isfinite(vec)):
        raise ValueError(f"{name} has non-finite components: {tuple(vec.tolist())}")
    return vec


def unit_vector(values: Vector3Like, name: str = "vector") -> npt.NDArray[np.float64]:
    """Return v / |v|, rejecting zero-length input.

    Raises:
        ValueError: If the vector has zero length or non-finite components.
    """
    vec = as_vector(values, name)
    norm = float(np.linalg.norm(vec))
    if norm == 0.0:
        raise ValueError(f"Cannot normalize zero-length {name}")
    return vec / norm


def to_tuple(values: Vector3Like) -> tuple[float, float, float]:
    """Convert a 3-vector to a plain tuple of Python floats."""
    vec = np.asarray(values, dtype=np.float64)
    return (float(vec[0]), float(vec[1]), float(vec[2]))
