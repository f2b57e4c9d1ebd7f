"""
Tests for calibration distance units.
"""

import pytest

from speedwall.unit_converter import DistanceUnit, UnitConverter, to_meters


class TestToMeters:
    def test_meters_identity(self):
        assert to_meters(2.5, DistanceUnit.METERS) == 2.5

    def test_centimeters(self):
        assert to_meters(100, DistanceUnit.CENTIMETERS) == 1.0

    def test_feet(self):
        assert to_meters(1, DistanceUnit.FEET) == pytest.approx(0.3048)

    def test_inches(self):
        assert to_meters(1, DistanceUnit.INCHES) == pytest.approx(0.0254)

    def test_accepts_labels(self):
        assert to_meters(12, "in") == pytest.approx(0.3048)
        assert to_meters(3, "ft") == pytest.approx(0.9144)

    def test_no_bounds_checking(self):
        assert to_meters(-50, "cm") == -0.5
        assert to_meters(0, "m") == 0.0

    def test_unknown_label(self):
        with pytest.raises(ValueError):
            to_meters(1, "yd")


class TestUnitConverter:
    def test_defaults(self):
        converter = UnitConverter()
        assert converter.units is DistanceUnit.METERS
        assert converter.distance_text == "1.0"
        assert converter.format_distance() == "1.0 m"

    def test_parse_distance_uses_selected_unit(self):
        converter = UnitConverter("cm")
        assert converter.parse_distance("250") == pytest.approx(2.5)
        assert converter.format_distance() == "250 cm"

    def test_parse_distance_rejects_non_positive(self):
        converter = UnitConverter()
        for text in ("0", "-3", "nan", "inf"):
            with pytest.raises(ValueError):
                converter.parse_distance(text)

    def test_parse_distance_rejects_garbage(self):
        converter = UnitConverter()
        with pytest.raises(ValueError):
            converter.parse_distance("two meters")
        # Failed parses leave the stored text alone
        assert converter.distance_text == "1.0"

    def test_set_units(self):
        converter = UnitConverter()
        converter.set_units("ft")
        assert converter.get_unit_label() == "ft"
        assert converter.get_input_increment() == 0.5
