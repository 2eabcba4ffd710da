"""Command-line interface for flowengineer."""
