"""Unit tests for the ray module.

Tests cover:
- Ray dataclass and ray_at function
- Vector utility functions (dot, cross, normalize, length, reflect, refract)
- Random direction samplers for Monte Carlo
"""

import math

import numpy as np
import pytest
import taichi as ti


class TestRayBasics:
    """Tests for Ray dataclass and basic operations."""

    def test_ray_at_origin(self):
        """Test ray_at returns origin when t=0."""
        from pathtracer.core.ray import Ray, ray_at, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            ray = Ray(origin=vec3(1.0, 2.0, 3.0), direction=vec3(0.0, 0.0, -1.0))
            result[None] = ray_at(ray, 0.0)

        test_kernel()
        r = result[None]
        assert abs(r[0] - 1.0) < 1e-6
        assert abs(r[1] - 2.0) < 1e-6
        assert abs(r[2] - 3.0) < 1e-6

    def test_ray_at_scales_unnormalized_direction(self):
        """Test ray_at uses the direction as given, without normalizing."""
        from pathtracer.core.ray import make_ray, ray_at, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(0.0, 0.0, 0.0), vec3(2.0, 0.0, 0.0))
            result[None] = ray_at(ray, 2.5)

        test_kernel()
        r = result[None]
        assert abs(r[0] - 5.0) < 1e-6
        assert abs(r[1]) < 1e-6
        assert abs(r[2]) < 1e-6

    def test_ray_at_negative_t(self):
        """Test ray_at handles negative t (behind origin)."""
        from pathtracer.core.ray import Ray, ray_at, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            ray = Ray(origin=vec3(0.0, 0.0, 0.0), direction=vec3(0.0, 1.0, 0.0))
            result[None] = ray_at(ray, -3.0)

        test_kernel()
        assert abs(result[None][1] + 3.0) < 1e-6


class TestVectorUtilities:
    """Tests for vector utility functions."""

    def test_length_and_length_squared(self):
        from pathtracer.core.ray import length, length_squared, vec3

        len_result = ti.field(dtype=ti.f32, shape=())
        sq_result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            v = vec3(3.0, 4.0, 12.0)
            len_result[None] = length(v)
            sq_result[None] = length_squared(v)

        test_kernel()
        assert abs(len_result[None] - 13.0) < 1e-5
        assert abs(sq_result[None] - 169.0) < 1e-4

    def test_normalize(self):
        from pathtracer.core.ray import normalize, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = normalize(vec3(0.0, 3.0, 4.0))

        test_kernel()
        r = result[None]
        assert abs(r[0]) < 1e-6
        assert abs(r[1] - 0.6) < 1e-6
        assert abs(r[2] - 0.8) < 1e-6

    def test_dot_product(self):
        from pathtracer.core.ray import dot, vec3

        result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = dot(vec3(1.0, 2.0, 3.0), vec3(4.0, 5.0, 6.0))

        test_kernel()
        assert abs(result[None] - 32.0) < 1e-6

    def test_cross_product(self):
        from pathtracer.core.ray import cross, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = cross(vec3(1.0, 0.0, 0.0), vec3(0.0, 1.0, 0.0))

        test_kernel()
        r = result[None]
        assert abs(r[0]) < 1e-6
        assert abs(r[1]) < 1e-6
        assert abs(r[2] - 1.0) < 1e-6

    def test_reflect(self):
        """reflect((1, -1, 0), (0, 1, 0)) is the mirror direction (1, 1, 0)."""
        from pathtracer.core.ray import reflect, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = reflect(vec3(1.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0))

        test_kernel()
        r = result[None]
        assert abs(r[0] - 1.0) < 1e-6
        assert abs(r[1] - 1.0) < 1e-6
        assert abs(r[2]) < 1e-6

    def test_refract_normal_incidence_passes_straight(self):
        from pathtracer.core.ray import refract, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = refract(vec3(0.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0), 1.0 / 1.5)

        test_kernel()
        r = result[None]
        assert abs(r[0]) < 1e-6
        assert abs(r[1] + 1.0) < 1e-6
        assert abs(r[2]) < 1e-6

    def test_refract_obeys_snell(self):
        """sin(theta_t) = eta * sin(theta_i) and the result is unit length."""
        from pathtracer.core.ray import refract, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())
        eta = 1.0 / 1.5
        theta = math.radians(30.0)
        sin_t, cos_t = math.sin(theta), math.cos(theta)

        @ti.kernel
        def test_kernel():
            incident = vec3(sin_t, -cos_t, 0.0)
            result[None] = refract(incident, vec3(0.0, 1.0, 0.0), eta)

        test_kernel()
        r = result.to_numpy()
        assert abs(np.linalg.norm(r) - 1.0) < 1e-5
        assert abs(r[0] - eta * math.sin(theta)) < 1e-5
        assert r[1] < 0.0

    def test_schlick_fresnel(self):
        """Schlick gives r0 at normal incidence and 1 at grazing incidence."""
        from pathtracer.core.ray import schlick_fresnel

        normal_result = ti.field(dtype=ti.f32, shape=())
        grazing_result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            normal_result[None] = schlick_fresnel(1.0, 1.0 / 1.5)
            grazing_result[None] = schlick_fresnel(0.0, 1.0 / 1.5)

        test_kernel()
        r0 = ((1.0 - 1.0 / 1.5) / (1.0 + 1.0 / 1.5)) ** 2
        assert abs(normal_result[None] - r0) < 1e-6
        assert abs(grazing_result[None] - 1.0) < 1e-6


class TestRandomSampling:
    """Tests for random direction samplers."""

    def test_random_unit_vector_length(self):
        from pathtracer.core.ray import random_unit_vector
        from pathtracer.core.rng import init_rng

        n = 2048
        lengths = ti.field(dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            for i in range(n):
                rng = init_rng(ti.u32(0), i, 0)
                v, rng = random_unit_vector(rng)
                lengths[i] = v.norm()

        test_kernel()
        assert np.allclose(lengths.to_numpy(), 1.0, atol=1e-5)

    def test_random_unit_vector_mean_near_zero(self):
        from pathtracer.core.ray import random_unit_vector
        from pathtracer.core.rng import init_rng

        n = 20000
        vectors = ti.field(dtype=ti.math.vec3, shape=n)

        @ti.kernel
        def test_kernel():
            for i in range(n):
                rng = init_rng(ti.u32(4), i, 0)
                v, rng = random_unit_vector(rng)
                vectors[i] = v

        test_kernel()
        mean = vectors.to_numpy().mean(axis=0)
        assert np.all(np.abs(mean) < 0.03)

    def test_random_in_hemisphere_orientation(self):
        from pathtracer.core.ray import random_in_hemisphere, vec3
        from pathtracer.core.rng import init_rng

        n = 2048
        dots = ti.field(dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            normal = vec3(0.0, 0.6, 0.8)
            for i in range(n):
                rng = init_rng(ti.u32(1), i, 0)
                v, rng = random_in_hemisphere(normal, rng)
                dots[i] = v.dot(normal)

        test_kernel()
        assert np.all(dots.to_numpy() >= 0.0)

    def test_random_in_unit_disk_bounds(self):
        from pathtracer.core.ray import random_in_unit_disk
        from pathtracer.core.rng import init_rng

        n = 2048
        points = ti.field(dtype=ti.math.vec3, shape=n)

        @ti.kernel
        def test_kernel():
            for i in range(n):
                rng = init_rng(ti.u32(2), i, 0)
                p, rng = random_in_unit_disk(rng)
                points[i] = p

        test_kernel()
        p = points.to_numpy()
        assert np.all(p[:, 0] ** 2 + p[:, 1] ** 2 < 1.0)
        assert np.all(p[:, 2] == 0.0)
        # Not collapsed to the center
        assert np.abs(p[:, :2]).max() > 0.5
        # Every draw was accepted before the retry limit
        assert np.all(np.any(p[:, :2] != 0.0, axis=1))


class TestPythonVectorHelpers:
    """Tests for the construction-time vector validation."""

    def test_as_vector_accepts_sequences(self):
        from pathtracer.core.vector import as_vector

        v = as_vector((1, 2, 3))
        assert v.dtype == np.float64
        assert v.tolist() == [1.0, 2.0, 3.0]

    def test_as_vector_rejects_wrong_shape(self):
        from pathtracer.core.vector import as_vector

        with pytest.raises(ValueError, match="exactly 3 components"):
            as_vector((1.0, 2.0))

    def test_as_vector_rejects_non_finite(self):
        from pathtracer.core.vector import as_vector

        with pytest.raises(ValueError, match="non-finite"):
            as_vector((1.0, float("nan"), 0.0))

    def test_unit_vector(self):
        from pathtracer.core.vector import unit_vector

        assert np.allclose(unit_vector((0.0, 0.0, -5.0)), (0.0, 0.0, -1.0))

    def test_unit_vector_rejects_zero(self):
        from pathtracer.core.vector import unit_vector

        with pytest.raises(ValueError, match="zero-length"):
            unit_vector((0.0, 0.0, 0.0))

    def test_to_tuple(self):
        from pathtracer.core.vector import to_tuple

        assert to_tuple(np.array([1, 2, 3])) == (1.0, 2.0, 3.0)
