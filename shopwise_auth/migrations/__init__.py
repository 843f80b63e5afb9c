"""Idempotent SQL schema files, applied in filename order at startup."""
