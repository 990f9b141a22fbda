"""Orthology database sources."""

from orthobundle.sources.base import SourceBase
from orthobundle.sources.string import StringSource
from orthobundle.sources.oma import OmaSource
from orthobundle.sources.orthodb import OrthoDBSource
from orthobundle.sources.registry import SourceRegistry, sources

__all__ = [
    "SourceBase",
    "StringSource",
    "OmaSource",
    "OrthoDBSource",
    "SourceRegistry",
    "sources",
]
