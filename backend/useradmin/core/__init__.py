"""Cross-cutting infrastructure: config, logging, extensions, storage, errors."""
