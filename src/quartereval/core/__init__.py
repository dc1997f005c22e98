"""Core enums, exceptions and shared types."""
