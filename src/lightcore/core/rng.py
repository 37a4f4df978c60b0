"""Per-instance pseudo-random streams.

Each area light owns a 32-bit xorshift state stored in a Taichi field, so
sampling one light never perturbs another light's sequence and a scene built
with the same seed reproduces the same samples. The device side advances a
state and maps it to a float in [0, 1); the host side derives well-mixed,
non-zero starting states with NumPy's SeedSequence.
"""

import numpy as np
import taichi as ti

# Substituted whenever a derived state would be zero (xorshift fixed point)
FALLBACK_STATE = 0x2545F491

# States are kept below 2**31 so they round-trip through u32 fields on every
# backend accessor
STATE_MASK = 0x7FFFFFFF

_INV_2_POW_24 = 1.0 / 16777216.0


@ti.func
def xorshift32(state: ti.u32) -> ti.u32:
    """Advance a xorshift32 state by one step."""
    x = state
    x ^= x << ti.cast(13, ti.u32)
    x ^= x >> ti.cast(17, ti.u32)
    x ^= x << ti.cast(5, ti.u32)
    return x


@ti.func
def state_to_uniform(state: ti.u32) -> ti.f32:
    """Map a state to a uniform float in [0, 1) using its top 24 bits."""
    return ti.cast(state >> ti.cast(8, ti.u32), ti.f32) * _INV_2_POW_24


def derive_stream_state(seed: int, stream: int) -> int:
    """Derive the starting state of a random stream.

    Args:
        seed: Scene-level seed (non-negative).
        stream: Stream index, typically the light index.

    Returns:
        A non-zero state that fits in 31 bits.
    """
    seq = np.random.SeedSequence([int(seed) & 0xFFFFFFFF, int(stream) & 0xFFFFFFFF])
    state = int(seq.generate_state(1, dtype=np.uint32)[0]) & STATE_MASK
    if state == 0:
        state = FALLBACK_STATE
    return state


def state_from_seed(seed: int) -> int:
    """Turn an explicit per-light seed into a well-mixed non-zero state."""
    seq = np.random.SeedSequence(int(seed) & 0xFFFFFFFF)
    state = int(seq.generate_state(1, dtype=np.uint32)[0]) & STATE_MASK
    if state == 0:
        state = FALLBACK_STATE
    return state
