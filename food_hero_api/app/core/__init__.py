"""Cross-cutting infrastructure: configuration, database, security, errors, logging."""
