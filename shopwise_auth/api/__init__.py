"""HTTP boundary - FastAPI application, wiring and request models."""
