"""Helpers for term parsing, validation, matcher caching and segmentation."""
