"""Pydantic models for workflow files and ref reports."""
