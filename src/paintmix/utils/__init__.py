"""Utilities package for the PaintMix catalog."""
