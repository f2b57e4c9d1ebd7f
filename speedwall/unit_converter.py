"""
Unit conversion from user-entered calibration distances to meters.
Handles the unit picker state and distance text validation.
"""

from enum import Enum


class DistanceUnit(Enum):
    """Distance units offered for the calibration distance entry"""

    METERS = "m"
    CENTIMETERS = "cm"
    INCHES = "in"
    FEET = "ft"

    def to_meters(self, value):
        """Convert a value in this unit to meters"""
        if self is DistanceUnit.METERS:
            return value
        elif self is DistanceUnit.CENTIMETERS:
            return value / 100
        elif self is DistanceUnit.INCHES:
            return value * UnitConverter.METERS_PER_INCH
        else:  # feet
            return value * UnitConverter.METERS_PER_FOOT

    @classmethod
    def from_label(cls, label):
        """
        Look up a unit by its label ("m", "cm", "in", "ft") or name.

        Raises:
            ValueError: If the label does not name a unit
        """
        if isinstance(label, cls):
            return label
        key = str(label).strip()
        for unit in cls:
            if key == unit.value or key.upper() == unit.name:
                return unit
        raise ValueError(f"Unknown distance unit: {label!r}")


def to_meters(value, unit):
    """
    Convert a distance to meters.

    No bounds checking is done; rejecting zero or negative values is
    the caller's job (see UnitConverter.parse_distance).

    Args:
        value: Numeric distance
        unit: DistanceUnit or its label

    Returns:
        Float distance in meters
    """
    return DistanceUnit.from_label(unit).to_meters(float(value))


class UnitConverter:
    """
    Holds the selected calibration unit and the distance input text.

    Both survive the distance dialog being closed and reopened, so the
    calibration line label can show what the user last entered.
    """

    # Conversion constants
    METERS_PER_INCH = 0.0254
    METERS_PER_FOOT = 0.3048

    def __init__(self, units=DistanceUnit.METERS, distance_text="1.0"):
        """
        Initialize the unit converter.

        Args:
            units: Selected DistanceUnit or label (default: meters)
            distance_text: Initial distance input text (default: "1.0")
        """
        self.units = DistanceUnit.from_label(units)
        self.distance_text = distance_text

    def set_units(self, units):
        """Change the selected unit"""
        self.units = DistanceUnit.from_label(units)

    def set_distance_text(self, text):
        """Store the raw distance input text"""
        self.distance_text = text

    def get_unit_label(self, units=None):
        """Get display label for a unit (uses current if not specified)"""
        if units is None:
            units = self.units
        return DistanceUnit.from_label(units).value

    def get_input_increment(self, units=None):
        """
        Get recommended spinbox increment for unit type.

        Args:
            units: Unit type (uses current if not specified)

        Returns:
            Float increment value
        """
        units = self.units if units is None else DistanceUnit.from_label(units)

        if units is DistanceUnit.METERS:
            return 0.1
        elif units is DistanceUnit.CENTIMETERS:
            return 1.0
        elif units is DistanceUnit.INCHES:
            return 1.0
        else:  # feet
            return 0.5

    def parse_distance(self, text=None, commit=True):
        """
        Parse the distance input and convert it to meters.

        Args:
            text: Text to parse (uses stored input text if not specified)
            commit: Store the text as the distance label once it parses

        Returns:
            Float distance in meters

        Raises:
            ValueError: If the text is not a number or not positive
        """
        if text is None:
            text = self.distance_text
        try:
            value = float(str(text).strip())
        except ValueError:
            raise ValueError(f"Invalid distance: {text!r}")

        # NaN fails every comparison, so test for the accepted range
        if not value > 0 or value == float("inf"):
            raise ValueError("Distance must be a positive number")

        if commit:
            self.distance_text = str(text).strip()
        return self.units.to_meters(value)

    def format_distance(self):
        """Label shown on the calibration line, e.g. "1.0 m" """
        return f"{self.distance_text} {self.get_unit_label()}"
