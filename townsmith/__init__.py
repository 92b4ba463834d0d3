"""Procedural settlement generation for tile-based roguelikes."""
