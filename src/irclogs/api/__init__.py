"""FastAPI application for the IRC log service."""
