"""Placement engine: orientations, stacking, anchors, candidates, scoring, free space."""
