"""Cross-cutting infrastructure: configuration, logging and the TTL cache."""
