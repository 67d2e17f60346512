"""FastAPI application for the live auction service."""
