"""Domain layer: enumerations, pure rules and ports (no I/O)."""
