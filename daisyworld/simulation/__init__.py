"""Configuration, worker pool, and the step engine."""
