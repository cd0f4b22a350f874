"""Credential verification against the user store."""
