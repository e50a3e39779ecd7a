"""API Schemas — Pydantic models validating every request before it reaches a route."""
