"""Core data models and box geometry."""
