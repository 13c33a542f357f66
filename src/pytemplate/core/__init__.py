"""Core utilities for PyTemplate."""
