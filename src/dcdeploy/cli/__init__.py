"""Command-line interface for dcdeploy."""
