"""Core models shared by the generation engine, formatting and CLI."""
