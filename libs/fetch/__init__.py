"""Retrieval of web pages as plain text."""

from .content_fetcher import ContentFetcher, extract_content, validate_url

__all__ = ["ContentFetcher", "extract_content", "validate_url"]
