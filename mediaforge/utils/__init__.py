"""Utility helpers shared across mediaforge."""
