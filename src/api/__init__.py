"""HTTP API for the snippet manager."""
