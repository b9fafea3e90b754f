"""LaunchLens — startup idea validation and competitive research."""

__version__ = "1.0.0"
