"""Core utilities shared across modules."""
