"""Application-level configuration."""
