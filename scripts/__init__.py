"""Maintenance scripts for MediaSync."""
