"""Explicit random number streams for Taichi kernels.

Every stochastic decision in the renderer (lens sampling, hemisphere sampling,
the Fresnel coin flip, pixel jitter) draws from a generator state that is
passed in and handed back by the caller. Each pixel sample seeds its own state
from ``(seed, pixel_index, sample_index)``, so parallel work items never share
generator state and a render is reproducible regardless of thread scheduling.

The state is a single ``u32``. Seeds are scrambled with Wang's integer hash and
the stream advances with the Numerical Recipes LCG; each output is the top 24
bits of the hashed state, which maps exactly onto f32 values in [0, 1).

Example:
    >>> @ti.kernel
    ... def draw() -> ti.f32:
    ...     rng = init_rng(ti.u32(7), 0, 0)
    ...     u, rng = rand_f32(rng)
    ...     return u
"""

import taichi as ti

# 2^-24, the spacing of the 24-bit mantissa grid in [0, 1)
_INV_2_POW_24 = 1.0 / 16777216.0


def make_seed(seed: int) -> int:
    """Fold an arbitrary Python integer into the u32 seed range."""
    return int(seed) & 0xFFFFFFFF


@ti.func
def hash_u32(x: ti.u32) -> ti.u32:
    """Scramble a 32-bit integer (Wang hash)."""
    h = (x ^ ti.u32(61)) ^ (x >> ti.u32(16))
    h *= ti.u32(9)
    h = h ^ (h >> ti.u32(4))
    h *= ti.u32(668265261)
    h = h ^ (h >> ti.u32(15))
    return h


@ti.func
def init_rng(seed: ti.u32, stream: ti.i32, sample: ti.i32) -> ti.u32:
    """Derive the starting state for one stream.

    Args:
        seed: Render-wide seed.
        stream: Stream identifier, usually the flattened pixel index.
        sample: Sample number within the stream.

    Returns:
        The initial generator state.
    """
    state = hash_u32(seed ^ hash_u32(ti.cast(stream, ti.u32)))
    state = hash_u32(state ^ hash_u32(ti.cast(sample, ti.u32) + ti.u32(1013904223)))
    return state


@ti.func
def rand_f32(state: ti.u32):
    """Draw a uniform value in [0, 1).

    Returns:
        A tuple of (value, next_state).
    """
    next_state = state * ti.u32(1664525) + ti.u32(1013904223)
    bits = hash_u32(next_state) >> ti.u32(8)
    value = ti.cast(bits, ti.f32) * _INV_2_POW_24
    return value, next_state


@ti.func
def rand_range(state: ti.u32, min_value: ti.f32, max_value: ti.f32):
    """Draw a uniform value in [min_value, max_value).

    Returns:
        A tuple of (value, next_state).
    """
    u, next_state = rand_f32(state)
    return min_value + (max_value - min_value) * u, next_state
