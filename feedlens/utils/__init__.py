"""Shared utilities: exceptions, logging and input validation."""
