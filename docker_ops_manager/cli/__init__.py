"""Command line interface for Docker Ops Manager."""
