"""Tests for geometry resolution."""

import pytest

from thumbs.descriptor import parse_mode
from thumbs.geometry import Layout, cover_size, fit_size, resolve_layout

SOURCE_SIZES = [(800, 600), (600, 800), (1000, 10), (10, 1000), (333, 777), (50, 40), (1, 1)]
TARGETS = [(100, 100), (120, 80), (37, 91), (1, 500)]


class TestFitSize:
    """Tests for fit_size."""

    def test_landscape(self):
        """Test 800x600 fits 100x100 as 100x75."""
        assert fit_size(800, 600, 100, 100) == (100, 75)

    def test_portrait(self):
        assert fit_size(600, 800, 100, 100) == (75, 100)

    def test_no_upscale_by_default(self):
        """Test a small source keeps its own size."""
        assert fit_size(50, 40, 100, 100) == (50, 40)

    def test_upscale(self):
        assert fit_size(50, 40, 100, 100, upscale=True) == (100, 80)

    def test_minimum_one_pixel(self):
        assert fit_size(1000, 1, 10, 10) == (10, 1)

    @pytest.mark.parametrize('src', SOURCE_SIZES)
    @pytest.mark.parametrize('target', TARGETS)
    def test_fit_invariant(self, src, target):
        """Test output fits the box and touches it in one dimension."""
        w, h = fit_size(*src, *target, upscale=True)

        assert w <= target[0] and h <= target[1]
        assert w == target[0] or h == target[1]
        # aspect ratio preserved within one pixel of rounding
        if w == target[0]:
            assert abs(h - src[1] * w / src[0]) < 1 or h == 1
        else:
            assert abs(w - src[0] * h / src[1]) < 1 or w == 1


class TestCoverSize:
    """Tests for cover_size."""

    def test_landscape(self):
        """Test 800x600 covers 100x100 as 133x100."""
        assert cover_size(800, 600, 100, 100) == (133, 100)

    def test_portrait(self):
        assert cover_size(600, 800, 100, 100) == (100, 133)

    def test_small_source_is_enlarged(self):
        assert cover_size(50, 40, 100, 100) == (125, 100)

    @pytest.mark.parametrize('src', SOURCE_SIZES)
    @pytest.mark.parametrize('target', TARGETS)
    def test_cover_invariant(self, src, target):
        """Test output covers the box and matches it in one dimension."""
        w, h = cover_size(*src, *target)

        assert w >= target[0] and h >= target[1]
        assert w == target[0] or h == target[1]


class TestResolveFit:
    """Tests for fit layouts."""

    def test_scenario(self):
        """Test m100x100 on 800x600."""
        layout = resolve_layout(800, 600, parse_mode('m'), 100, 100)

        assert layout == Layout(100, 75, 100, 75, 0, 0)


class TestResolvePad:
    """Tests for pad layouts."""

    def test_center(self):
        """Test wcc100x100 on 800x600 leaves a 12px top band."""
        layout = resolve_layout(800, 600, parse_mode('wcc'), 100, 100)

        assert layout.scaled_size == (100, 75)
        assert layout.canvas_size == (100, 100)
        assert (layout.x, layout.y) == (0, 12)

    @pytest.mark.parametrize('token, expected_y', [('wct', 0), ('wlt', 0), ('wcc', 12), ('wcb', 25), ('wrb', 25)])
    def test_vertical_anchor_on_landscape(self, token, expected_y):
        """Test width already matches, so only the vertical anchor moves the image."""
        layout = resolve_layout(800, 600, parse_mode(token), 100, 100)

        assert layout.x == 0
        assert layout.y == expected_y

    @pytest.mark.parametrize('token, expected_x', [('wlc', 0), ('wlb', 0), ('wcc', 12), ('wrc', 25), ('wrt', 25)])
    def test_horizontal_anchor_on_portrait(self, token, expected_x):
        """Test height already matches, so only the horizontal anchor moves the image."""
        layout = resolve_layout(600, 800, parse_mode(token), 100, 100)

        assert layout.scaled_size == (75, 100)
        assert layout.y == 0
        assert layout.x == expected_x

    def test_small_source_anchored_both_ways(self):
        """Test a source smaller than the target is anchored on both axes."""
        layout = resolve_layout(50, 40, parse_mode('wrb'), 100, 100)

        assert layout.scaled_size == (50, 40)
        assert (layout.x, layout.y) == (50, 60)

    def test_small_source_upscaled(self):
        layout = resolve_layout(50, 40, parse_mode('wcc'), 100, 100, upscale=True)

        assert layout.scaled_size == (100, 80)
        assert (layout.x, layout.y) == (0, 10)

    @pytest.mark.parametrize('src', SOURCE_SIZES)
    @pytest.mark.parametrize('token', ['wlt', 'wcc', 'wrb', 'wct', 'wlb'])
    def test_placement_inside_canvas(self, src, token):
        """Test the scaled image always lies on the canvas."""
        layout = resolve_layout(*src, parse_mode(token), 120, 80)

        assert layout.canvas_size == (120, 80)
        assert 0 <= layout.x and layout.x + layout.scaled_width <= 120
        assert 0 <= layout.y and layout.y + layout.scaled_height <= 80


class TestResolveCrop:
    """Tests for crop layouts."""

    def test_center_scenario(self):
        """Test cc100x100 on 800x600 crops 100x100 from 133x100 at x=16."""
        layout = resolve_layout(800, 600, parse_mode('cc'), 100, 100)

        assert layout.scaled_size == (133, 100)
        assert layout.canvas_size == (100, 100)
        assert (layout.x, layout.y) == (16, 0)

    @pytest.mark.parametrize('token, expected', [
        ('lt', (0, 0)),
        ('lb', (0, 0)),
        ('rt', (33, 0)),
        ('rb', (33, 0)),
        ('cc', (16, 0)),
        ('c', (16, 0)),
    ])
    def test_anchors_on_landscape(self, token, expected):
        """Test anchors on a source wider than tall."""
        layout = resolve_layout(800, 600, parse_mode(token), 100, 100)
        assert (layout.x, layout.y) == expected

    @pytest.mark.parametrize('token, expected', [
        ('lt', (0, 0)),
        ('rt', (0, 0)),
        ('lb', (0, 33)),
        ('rb', (0, 33)),
        ('cc', (0, 16)),
    ])
    def test_anchors_on_portrait(self, token, expected):
        """Test anchors on a source taller than wide."""
        layout = resolve_layout(600, 800, parse_mode(token), 100, 100)

        assert layout.scaled_size == (100, 133)
        assert (layout.x, layout.y) == expected

    def test_small_source_is_enlarged(self):
        layout = resolve_layout(50, 40, parse_mode('cc'), 100, 100)

        assert layout.scaled_size == (125, 100)
        assert (layout.x, layout.y) == (12, 0)

    @pytest.mark.parametrize('src', SOURCE_SIZES)
    @pytest.mark.parametrize('target', TARGETS)
    @pytest.mark.parametrize('token', ['lt', 'cc', 'rb', 'ct', 'lc'])
    def test_window_inside_scaled_image(self, src, target, token):
        """Test the crop window never reads outside the scaled image."""
        layout = resolve_layout(*src, parse_mode(token), *target)

        assert layout.canvas_size == target
        assert 0 <= layout.x and layout.x + target[0] <= layout.scaled_width
        assert 0 <= layout.y and layout.y + target[1] <= layout.scaled_height


class TestResolveErrors:
    """Tests for invalid input."""

    def test_empty_source(self):
        with pytest.raises(ValueError):
            resolve_layout(0, 10, parse_mode('m'), 10, 10)
