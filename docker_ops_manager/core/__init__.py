"""Core functionality for Docker Ops Manager."""
