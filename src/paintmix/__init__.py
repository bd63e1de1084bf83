"""PaintMix - paint color catalog with formula import and mixing calculator."""

__version__ = "0.1.0"
