"""Request models for the HTTP API."""
