"""Upload storage settings."""
