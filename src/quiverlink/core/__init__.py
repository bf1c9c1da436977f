"""Core data models, errors, and run logging."""
