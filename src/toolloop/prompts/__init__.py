"""Prompt templates used by toolloop operations."""
