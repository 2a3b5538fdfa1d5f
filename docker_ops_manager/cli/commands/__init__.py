"""CLI commands for Docker Ops Manager."""
