"""Pydantic request and response schemas for the HTTP API."""
