"""Tests for the progressive renderer.

This module tests the ProgressiveRenderer class including:
- RenderConfig validation
- Initialization and setup
- Progressive sample accumulation
- Progress callbacks and generators
- Reset and resize functionality
- Deterministic output however samples are batched
- Image output as PPM and PNG

Note: Imports are done inside test methods to avoid Taichi initialization issues.
The conftest.py fixture initializes Taichi before tests run.
"""

import numpy as np
import pytest


def _three_spheres():
    from pathtracer.camera.thin_lens import setup_camera
    from pathtracer.scene.presets import create_three_sphere_scene

    scene, camera = create_three_sphere_scene()
    setup_camera(camera)
    return scene


class TestRenderConfig:
    """Test RenderConfig validation."""

    def test_defaults(self):
        from pathtracer.core.progressive import RenderConfig

        config = RenderConfig(width=200, height=100)
        assert config.samples_per_pixel == 100
        assert config.max_depth == 50
        assert config.seed == 0
        assert config.aspect_ratio == 2.0

    @pytest.mark.parametrize(
        "kwargs, message",
        [
            ({"width": 0, "height": 10}, "positive"),
            ({"width": 10, "height": 5000}, "exceed maximum"),
            ({"width": 10, "height": 10, "samples_per_pixel": 0}, "samples_per_pixel"),
            ({"width": 10, "height": 10, "max_depth": -1}, "max_depth"),
        ],
    )
    def test_invalid_config(self, kwargs, message):
        from pathtracer.core.progressive import RenderConfig

        with pytest.raises(ValueError, match=message):
            RenderConfig(**kwargs)


class TestProgressiveRendererInit:
    """Test ProgressiveRenderer initialization."""

    def test_init_creates_render_target(self):
        from pathtracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(128, 96)

        assert renderer.width == 128
        assert renderer.height == 96
        assert renderer.sample_count == 0

    def test_from_config(self):
        from pathtracer.core.progressive import ProgressiveRenderer, RenderConfig

        config = RenderConfig(width=40, height=20, max_depth=7, seed=3)
        renderer = ProgressiveRenderer.from_config(config)

        assert (renderer.width, renderer.height) == (40, 20)
        assert renderer.max_depth == 7
        assert renderer.seed == 3

    def test_init_rejects_oversized_dimensions(self):
        from pathtracer.core.progressive import ProgressiveRenderer

        with pytest.raises(ValueError, match="exceed maximum"):
            ProgressiveRenderer(4096, 100)

    def test_init_rejects_negative_depth(self):
        from pathtracer.core.progressive import ProgressiveRenderer

        with pytest.raises(ValueError, match="max_depth"):
            ProgressiveRenderer(10, 10, max_depth=-2)


class TestProgressiveRendering:
    """Test sample accumulation, callbacks and generators."""

    def test_render_accumulates(self):
        from pathtracer.core.progressive import ProgressiveRenderer

        _three_spheres()
        renderer = ProgressiveRenderer(16, 8, max_depth=5)
        renderer.render(3)
        renderer.render(2)
        assert renderer.sample_count == 5

    def test_callback_called_per_batch(self):
        from pathtracer.core.progressive import ProgressiveRenderer

        _three_spheres()
        renderer = ProgressiveRenderer(16, 8, max_depth=5)
        calls = []
        renderer.render(7, batch_size=3, callback=lambda cur, tgt: calls.append((cur, tgt)))

        assert calls == [(3, 7), (6, 7), (7, 7)]

    def test_generator_targets_include_existing_samples(self):
        from pathtracer.core.progressive import ProgressiveRenderer

        _three_spheres()
        renderer = ProgressiveRenderer(16, 8, max_depth=5)
        renderer.render(2)

        progress = list(renderer.render_progressive(4, batch_size=2))
        assert progress == [(4, 6), (6, 6)]

    def test_zero_samples_is_noop(self):
        from pathtracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(16, 8)
        assert list(renderer.render_progressive(0)) == []
        assert renderer.sample_count == 0

    def test_invalid_batch_size(self):
        from pathtracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(16, 8)
        with pytest.raises(ValueError, match="batch_size"):
            renderer.render(4, batch_size=0)


class TestDeterministicOutput:
    """Same scene, camera, seed and sample count give the same bytes."""

    def _render_bytes(self, seed, batch_size, tmp_path, name):
        from pathtracer.core.progressive import ProgressiveRenderer

        _three_spheres()
        renderer = ProgressiveRenderer(20, 10, max_depth=8, seed=seed)
        renderer.render(6, batch_size=batch_size)
        path = tmp_path / name
        renderer.save_ppm(path)
        return path.read_bytes()

    def test_batch_split_does_not_change_bytes(self, tmp_path):
        a = self._render_bytes(11, 6, tmp_path, "a.ppm")
        b = self._render_bytes(11, 1, tmp_path, "b.ppm")
        c = self._render_bytes(11, 4, tmp_path, "c.ppm")
        assert a == b == c

    def test_seed_changes_bytes(self, tmp_path):
        a = self._render_bytes(1, 6, tmp_path, "a.ppm")
        b = self._render_bytes(2, 6, tmp_path, "b.ppm")
        assert a != b


class TestResetAndResize:
    """Test reset and resize."""

    def test_reset_clears_samples(self):
        from pathtracer.core.progressive import ProgressiveRenderer

        _three_spheres()
        renderer = ProgressiveRenderer(16, 8, max_depth=5)
        renderer.render(2)
        renderer.reset()

        assert renderer.sample_count == 0
        assert np.all(renderer.get_image_numpy() == 0.0)

    def test_reset_then_rerender_is_reproducible(self):
        from pathtracer.core.progressive import ProgressiveRenderer

        _three_spheres()
        renderer = ProgressiveRenderer(16, 8, max_depth=5, seed=4)
        renderer.render(2)
        first = renderer.get_rgb8()
        renderer.reset()
        renderer.render(2)

        assert np.array_equal(first, renderer.get_rgb8())

    def test_resize(self):
        from pathtracer.core.progressive import ProgressiveRenderer

        _three_spheres()
        renderer = ProgressiveRenderer(16, 8, max_depth=5)
        renderer.render(1)
        renderer.resize(30, 10)

        assert (renderer.width, renderer.height) == (30, 10)
        assert renderer.sample_count == 0
        assert renderer.get_image_numpy().shape == (10, 30, 3)

    def test_resize_rejects_invalid(self):
        from pathtracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(16, 8)
        with pytest.raises(ValueError):
            renderer.resize(0, 8)
        assert (renderer.width, renderer.height) == (16, 8)


class TestOutput:
    """Test image output."""

    def test_rgb8_shape_and_dtype(self):
        from pathtracer.core.progressive import ProgressiveRenderer

        _three_spheres()
        renderer = ProgressiveRenderer(20, 10, max_depth=5)
        renderer.render(2)
        pixels = renderer.get_rgb8()

        assert pixels.shape == (10, 20, 3)
        assert pixels.dtype == np.uint8

    def test_top_row_is_sky(self):
        """The top row of the three-sphere scene sees only the sky, which is blue-ish."""
        from pathtracer.core.progressive import ProgressiveRenderer

        _three_spheres()
        renderer = ProgressiveRenderer(20, 10, max_depth=5)
        renderer.render(4)
        pixels = renderer.get_rgb8().astype(int)

        top = pixels[0]
        assert np.all(top[:, 2] >= top[:, 0])
        assert np.all(top[:, 2] >= 250)

    def test_save_ppm(self, tmp_path):
        from pathtracer.core.progressive import ProgressiveRenderer

        _three_spheres()
        renderer = ProgressiveRenderer(20, 10, max_depth=5)
        renderer.render(1)
        path = tmp_path / "out.ppm"
        renderer.save_ppm(path)

        data = path.read_bytes()
        header = b"P6\n20 10\n255\n"
        assert data.startswith(header)
        assert len(data) == len(header) + 20 * 10 * 3

    def test_save_png(self, tmp_path):
        from PIL import Image

        from pathtracer.core.progressive import ProgressiveRenderer

        _three_spheres()
        renderer = ProgressiveRenderer(20, 10, max_depth=5)
        renderer.render(1)
        path = tmp_path / "out.png"
        renderer.save_png(path)

        with Image.open(path) as img:
            assert img.size == (20, 10)
            assert np.array_equal(np.asarray(img), renderer.get_rgb8())

    def test_repr(self):
        from pathtracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(16, 8, max_depth=3, seed=9)
        text = repr(renderer)
        assert "width=16" in text
        assert "height=8" in text
        assert "seed=9" in text
        assert "samples=0" in text
