"""Wayfarer travel planning and journaling API."""
