"""Persisted resolution index."""
