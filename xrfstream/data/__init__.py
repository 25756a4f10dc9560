"""Spectrum buffers and shared data types."""
