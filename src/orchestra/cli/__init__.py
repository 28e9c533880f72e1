"""Command-line interface for Orchestra."""
