"""Per-step record sinks."""
