"""Web API for MediaSync."""
