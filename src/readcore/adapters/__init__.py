"""Adapters that build ReadCore trees from third-party parsers."""

from .soup import document_from_soup, parse_with_soup

__all__ = ["document_from_soup", "parse_with_soup"]
