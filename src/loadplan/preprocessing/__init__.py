"""Expansion, ordering, grouping, free-space and zone setup."""
