"""Shared utilities: logging, exceptions, hashing, validation."""
