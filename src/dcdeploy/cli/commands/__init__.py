"""dcdeploy CLI command groups."""
