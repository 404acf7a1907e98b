import pytest

from fractal_engine import HSLColor, palette


class TestPalette:
    def test_five_entries(self) -> None:
        assert len(palette(123.0)) == 5

    def test_hue_offsets(self) -> None:
        hues = [color.hue for color in palette(100.0)]
        assert hues == pytest.approx([100.0, 220.0, 340.0, 130.0, 70.0])

    def test_negative_offset_wraps(self) -> None:
        assert palette(10.0)[4].hue == pytest.approx(340.0)

    def test_full_turn_is_identical(self) -> None:
        assert [c.hue for c in palette(0.0)] == [c.hue for c in palette(360.0)]

    def test_fixed_saturation_and_lightness(self) -> None:
        for color in palette(45.0):
            assert color.saturation == 80.0
            assert color.lightness == 60.0


class TestHSLColor:
    def test_css_string(self) -> None:
        assert str(HSLColor(0.0, 80.0, 60.0)) == "hsl(0, 80%, 60%)"

    def test_to_rgb(self) -> None:
        assert HSLColor(0.0, 80.0, 60.0).to_rgb() == (235, 71, 71)

    def test_grey_when_unsaturated(self) -> None:
        r, g, b = HSLColor(200.0, 0.0, 50.0).to_rgb()
        assert r == g == b
