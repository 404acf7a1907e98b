import numpy as np
import pytest

from fractal_engine import PreconditionError, RecordingSurface, iterate
from fractal_engine.escape_time import (
    INSIDE_COLOR,
    colorize_counts,
    escape_counts,
    julia_grid,
    mandelbrot_grid,
    render_escape_time,
    render_julia,
    render_mandelbrot,
)
from fractal_engine.surface import to_rgb

INSIDE_RGB = to_rgb(INSIDE_COLOR)


class TestIterate:
    def test_origin_never_escapes(self) -> None:
        assert iterate(0.0, 0.0, 0.0, 0.0, 100) == 100

    def test_already_escaped_start(self) -> None:
        assert iterate(2.0, 2.0, 0.0, 0.0, 10) == 0

    def test_escape_on_boundary_counts_steps(self) -> None:
        # z: 1 -> 2, and |2|**2 == 4 is already outside
        assert iterate(1.0, 0.0, 1.0, 0.0, 100) == 1

    def test_zero_budget(self) -> None:
        assert iterate(0.1, 0.1, 0.1, 0.1, 0) == 0

    def test_negative_budget_rejected(self) -> None:
        with pytest.raises(PreconditionError):
            iterate(0.0, 0.0, 0.0, 0.0, -1)

    def test_result_within_bounds(self) -> None:
        rng = np.random.default_rng(3)
        for zx, zy, cr, ci in rng.uniform(-2.5, 2.5, size=(200, 4)):
            result = iterate(zx, zy, cr, ci, 20)
            assert 0 <= result <= 20

    def test_deterministic(self) -> None:
        assert iterate(-0.75, 0.1, -0.75, 0.1, 500) == iterate(-0.75, 0.1, -0.75, 0.1, 500)


class TestEscapeCounts:
    def test_matches_scalar_iterator_for_mandelbrot(self) -> None:
        zx, zy = mandelbrot_grid(8, 6, 3.0, 0.5, 0.0)
        counts = escape_counts(zx, zy, zx, zy, 50)
        assert counts.shape == (6, 8)
        for row in range(6):
            for col in range(8):
                expected = iterate(zx[row, col], zy[row, col], zx[row, col], zy[row, col], 50)
                assert counts[row, col] == expected

    def test_matches_scalar_iterator_for_julia(self) -> None:
        zx, zy = julia_grid(7, 5, 1.0)
        counts = escape_counts(zx, zy, -0.8, 0.156, 40)
        for row in range(5):
            for col in range(7):
                assert counts[row, col] == iterate(zx[row, col], zy[row, col], -0.8, 0.156, 40)

    def test_grid_maps_center_pixel_to_offset(self) -> None:
        zx, zy = mandelbrot_grid(10, 10, 100.0, 2.0, 1.5)
        assert zx[5, 5] == pytest.approx(-2.0)
        assert zy[5, 5] == pytest.approx(-1.5)


class TestColorize:
    def test_inside_sentinel_gets_dark_color(self) -> None:
        rgb = colorize_counts(np.array([[100]]), 100)
        assert tuple(rgb[0, 0]) == INSIDE_RGB

    def test_zero_count_is_red(self) -> None:
        rgb = colorize_counts(np.array([[0]]), 100)
        assert tuple(rgb[0, 0]) == (255, 0, 0)

    def test_output_shape_and_dtype(self) -> None:
        rgb = colorize_counts(np.zeros((3, 4), dtype=np.int32), 10)
        assert rgb.shape == (3, 4, 3)
        assert rgb.dtype == np.uint8


class TestRenderEscapeTime:
    def test_deep_zoom_at_origin_is_all_inside(self) -> None:
        surface = RecordingSurface(16, 12)
        render_mandelbrot(surface, 1e6, 0.0, 0.0)
        assert np.all(surface.pixels == np.array(INSIDE_RGB, dtype=np.uint8))

    def test_overwrites_every_pixel(self) -> None:
        surface = RecordingSurface(16, 12, background=(1, 2, 3))
        render_mandelbrot(surface, 4.0, 0.5, 0.0)
        assert not np.any(np.all(surface.pixels == np.array([1, 2, 3], dtype=np.uint8), axis=-1))

    def test_returns_counts_for_each_pixel(self) -> None:
        surface = RecordingSurface(20, 10)
        counts = render_escape_time(surface, 50.0, 0.5, 0.0, max_iter=30)
        assert counts.shape == (10, 20)
        assert counts.min() >= 0
        assert counts.max() <= 30

    def test_julia_center_inside_corner_outside(self) -> None:
        surface = RecordingSurface(20, 20)
        render_julia(surface, 0.0, 0.0, 1.0)
        assert surface.get_pixel(10, 10) == INSIDE_RGB
        assert surface.get_pixel(0, 0) != INSIDE_RGB

    def test_rejects_non_positive_zoom_without_drawing(self) -> None:
        surface = RecordingSurface(8, 8)
        with pytest.raises(PreconditionError):
            render_escape_time(surface, 0.0)
        assert surface.calls == []

    def test_rejects_zero_max_iter(self) -> None:
        surface = RecordingSurface(8, 8)
        with pytest.raises(PreconditionError):
            render_escape_time(surface, 10.0, max_iter=0)
        assert surface.calls == []

    def test_banded_render_matches_single_pass(self) -> None:
        # taller than one band so the render is split
        surface = RecordingSurface(4, 130)
        counts = render_escape_time(surface, 40.0, 0.5, 0.0, max_iter=25)
        zx, zy = mandelbrot_grid(4, 130, 40.0, 0.5, 0.0)
        np.testing.assert_array_equal(counts, escape_counts(zx, zy, zx, zy, 25))

    def test_bands_share_one_trace_per_width(self) -> None:
        from fractal_engine.escape_time import _escape_run

        before = _escape_run.experimental_get_tracing_count()
        render_escape_time(RecordingSurface(5, 130), 40.0, 0.5, 0.0, max_iter=10)
        after_first = _escape_run.experimental_get_tracing_count()
        render_escape_time(RecordingSurface(5, 70), 40.0, 0.5, 0.0, max_iter=10)
        assert after_first - before <= 1
        assert _escape_run.experimental_get_tracing_count() == after_first
