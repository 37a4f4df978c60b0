"""Vector and point utilities for Taichi kernels.

Points and vectors share the ``tm.vec3`` representation; ``point3`` is an
alias used where a value denotes a location. Point - Point gives a Vector and
Point + Vector gives a Point through the ordinary vec3 operators.

All functions are total over floats: degenerate inputs produce zero or
neutral results rather than errors. A small set of NumPy helpers mirrors the
checks on the host side for parameter validation.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from lightcore.core.vector import vec3, normalize
    >>> # normalize() is a @ti.func and is called inside kernels
"""

import numpy as np
import taichi as ti
import taichi.math as tm

# Type aliases for 3D vectors and points using Taichi's math module
vec3 = tm.vec3
point3 = tm.vec3

# Vectors at or below this length normalize to zero
NORMALIZE_EPSILON = 1e-6

# Threshold used by near_zero on each component
NEAR_ZERO_EPSILON = 1e-8


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    """Compute the dot product a . b."""
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    """Compute the cross product a x b."""
    return tm.cross(a, b)


@ti.func
def length_squared(v: vec3) -> ti.f32:
    """Compute the squared Euclidean length of a vector."""
    return tm.dot(v, v)


@ti.func
def length(v: vec3) -> ti.f32:
    """Compute the Euclidean length of a vector."""
    return ti.sqrt(tm.dot(v, v))


@ti.func
def normalize(v: vec3) -> vec3:
    """Normalize a vector to unit length.

    Args:
        v: The input vector.

    Returns:
        A unit vector in the direction of v, or the zero vector when
        |v| <= NORMALIZE_EPSILON.
    """
    result = vec3(0.0, 0.0, 0.0)
    len_v = ti.sqrt(tm.dot(v, v))
    if len_v > NORMALIZE_EPSILON:
        result = v / len_v
    return result


@ti.func
def is_finite(v: vec3) -> ti.i32:
    """Check that every component of v is neither NaN nor infinite.

    Returns:
        1 if all components are finite, 0 otherwise.
    """
    finite = 1
    for i in ti.static(range(3)):
        if tm.isnan(v[i]) or tm.isinf(v[i]):
            finite = 0
    return finite


@ti.func
def distance_squared(a: point3, b: point3) -> ti.f32:
    """Squared distance between two points."""
    d = a - b
    return tm.dot(d, d)


@ti.func
def distance(a: point3, b: point3) -> ti.f32:
    """Distance between two points."""
    d = a - b
    return ti.sqrt(tm.dot(d, d))


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Check if every component of v is within NEAR_ZERO_EPSILON of zero."""
    return (
        ti.abs(v[0]) < NEAR_ZERO_EPSILON
        and ti.abs(v[1]) < NEAR_ZERO_EPSILON
        and ti.abs(v[2]) < NEAR_ZERO_EPSILON
    )


@ti.func
def reflect(v: vec3, n: vec3) -> vec3:
    """Reflect v about the unit normal n: v - 2(v.n)n."""
    return v - 2.0 * tm.dot(v, n) * n


@ti.func
def build_onb_from_normal(n: vec3):
    """Build an orthonormal basis whose third axis is the unit normal n.

    The helper axis is X unless |n.x| >= 0.9, in which case Y is used.
    u = normalize(n x a), v = n x u.

    Args:
        n: A unit-length normal vector.

    Returns:
        A tuple (u, v, n) forming an orthonormal basis.
    """
    a = vec3(1.0, 0.0, 0.0)
    if ti.abs(n[0]) >= 0.9:
        a = vec3(0.0, 1.0, 0.0)
    u = normalize(tm.cross(n, a))
    v = tm.cross(n, u)
    return u, v, n


# =============================================================================
# Host-side helpers (NumPy)
# =============================================================================


def as_vec3_tuple(values) -> tuple[float, float, float]:
    """Convert any 3-element sequence or vec3 into a tuple of floats.

    Raises:
        ValueError: If values does not hold exactly three components.
    """
    arr = np.asarray([float(x) for x in values], dtype=np.float64)
    if arr.shape != (3,):
        raise ValueError(f"Expected 3 components, got {arr.shape[0]}")
    return (float(arr[0]), float(arr[1]), float(arr[2]))


def is_finite_tuple(values) -> bool:
    """Return True if every component is finite."""
    return bool(np.all(np.isfinite(np.asarray(values, dtype=np.float64))))


def normalize_tuple(values) -> tuple[float, float, float]:
    """Normalize a host-side vector; zero-length input yields (0, 0, 0)."""
    arr = np.asarray(values, dtype=np.float64)
    norm = float(np.linalg.norm(arr))
    if not np.isfinite(norm) or norm <= NORMALIZE_EPSILON:
        return (0.0, 0.0, 0.0)
    arr = arr / norm
    return (float(arr[0]), float(arr[1]), float(arr[2]))


def onb_from_normal_tuple(normal) -> tuple[tuple[float, float, float], tuple[float, float, float]]:
    """Host counterpart of build_onb_from_normal returning the (u, v) axes."""
    n = np.asarray(normal, dtype=np.float64)
    helper = np.array([1.0, 0.0, 0.0]) if abs(n[0]) < 0.9 else np.array([0.0, 1.0, 0.0])
    u = np.asarray(normalize_tuple(np.cross(n, helper)))
    v = np.cross(n, u)
    return (
        (float(u[0]), float(u[1]), float(u[2])),
        (float(v[0]), float(v[1]), float(v[2])),
    )
