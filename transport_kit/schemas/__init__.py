"""Schemas — Pydantic models for response bodies."""
