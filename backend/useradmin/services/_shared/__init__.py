"""Framework-agnostic building blocks shared by every application service."""
