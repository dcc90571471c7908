"""Admin command-line interface."""
