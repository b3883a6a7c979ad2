"""Smoke-detector event ingestion and notification service."""
