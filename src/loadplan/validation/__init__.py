"""Placement validation."""
