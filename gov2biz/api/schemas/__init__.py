"""Pydantic models describing the API wire contract."""
