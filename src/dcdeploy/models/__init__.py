"""Pydantic models for dcdeploy configuration, jobs, and scheduler payloads."""
