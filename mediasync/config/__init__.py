"""Configuration package for MediaSync."""
