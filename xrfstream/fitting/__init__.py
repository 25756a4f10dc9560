"""Fit routines turning spectra into per-element counts."""
