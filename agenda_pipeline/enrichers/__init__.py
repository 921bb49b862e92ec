"""LLM-driven structured extraction."""
