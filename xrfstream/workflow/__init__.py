"""Streaming stages: accumulation, fitting, and publishing."""
