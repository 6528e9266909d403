"""Trip packing and solve orchestration."""
