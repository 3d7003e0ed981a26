"""MediaSync data models."""
