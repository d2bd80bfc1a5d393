"""Domain model for cross-version builds."""
