"""Pydantic models shared by the analysis engine and its hosts."""
