"""Storefront account registration and authentication service."""
