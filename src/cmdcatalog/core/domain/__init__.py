"""Core domain models for command definitions."""
