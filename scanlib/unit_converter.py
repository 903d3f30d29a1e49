"""
Unit conversion between pixels and physical page units.
Handles the DPI-based conversion used to size exported documents.
"""


class UnitConverter:
    """
    Converts lengths between pixels and physical units at a fixed DPI.

    Supports four unit types:
    - pixels: Direct pixel measurements
    - mm: Millimeters
    - inches: Inches
    - points: PDF points (1/72 inch)

    At 300 DPI an A4 page is 2480x3508 pixels, 210x297 mm.
    """

    # Conversion constants
    MM_PER_INCH = 25.4
    POINTS_PER_INCH = 72.0

    UNITS = ("mm", "inches", "points", "pixels")

    def __init__(self, units="mm", dpi=300):
        """
        Initialize the unit converter.

        Args:
            units: Default unit type ("mm", "inches", "points" or "pixels")
            dpi: Dots per inch for conversion (default: 300)
        """
        self._check_units(units)
        if dpi <= 0:
            raise ValueError("DPI must be positive")
        self.units = units
        self.dpi = dpi

    def _check_units(self, units):
        if units not in self.UNITS:
            raise ValueError(f"Unknown units '{units}'. Choose from {', '.join(self.UNITS)}")

    def _per_inch(self, units):
        if units == "inches":
            return 1.0
        if units == "points":
            return self.POINTS_PER_INCH
        return self.MM_PER_INCH

    def units_to_pixels(self, value, units=None):
        """
        Convert a physical length to pixels.

        Args:
            value: Length in the given units
            units: Override default units (optional)

        Returns:
            Integer pixel value, rounded to the nearest pixel
        """
        units = units or self.units
        self._check_units(units)
        if units == "pixels":
            return int(round(value))
        return int(round(value / self._per_inch(units) * self.dpi))

    def pixels_to_units(self, pixels, units=None):
        """
        Convert pixels to a physical length.

        Returns:
            Float value in target units
        """
        units = units or self.units
        self._check_units(units)
        if units == "pixels":
            return float(pixels)
        return pixels / self.dpi * self._per_inch(units)

    def get_unit_label(self, units=None):
        """
        Get display label for unit type.

        Returns:
            String label ("mm", "in", "pt" or "px")
        """
        units = units or self.units
        return {"pixels": "px", "inches": "in", "points": "pt"}.get(units, "mm")
