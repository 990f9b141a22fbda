"""Source discovery and lookup."""

import importlib.metadata
import logging
from typing import Dict, List

from orthobundle.core.tables import validate_tag
from orthobundle.sources.base import SourceBase
from orthobundle.sources.oma import OmaSource
from orthobundle.sources.orthodb import OrthoDBSource
from orthobundle.sources.string import StringSource

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "orthobundle.sources"


class SourceRegistry:
    """
    Registry of orthology sources.

    Built-in sources are always present; third-party sources are
    discovered via entry points in the 'orthobundle.sources' group. Tags
    must be unique so that prefixed group IDs never collide.
    """

    def __init__(self, builtins: bool = True):
        self._sources: Dict[str, SourceBase] = {}
        self._discovered = not builtins
        if builtins:
            for source in (StringSource(), OmaSource(), OrthoDBSource()):
                self.register(source)

    def register(self, source: SourceBase) -> None:
        """
        Add a source.

        Raises:
            ValueError: If the name is taken or the tag is malformed or taken
        """
        validate_tag(source.tag)
        if source.name in self._sources:
            raise ValueError(f"Source '{source.name}' already registered")
        for other in self._sources.values():
            if other.tag == source.tag:
                raise ValueError(
                    f"Source tag '{source.tag}' of '{source.name}' already used by '{other.name}'"
                )
        self._sources[source.name] = source

    def discover(self) -> None:
        """Discover additional sources via entry points."""
        if self._discovered:
            return
        self._discovered = True

        for ep in importlib.metadata.entry_points(group=ENTRY_POINT_GROUP):
            try:
                source = ep.load()()
                self.register(source)
            except Exception as e:
                logger.warning(f"Failed to load source {ep.name}: {e}")

    def list(self) -> List[str]:
        """
        List available source names.

        Returns:
            Source names in registration order
        """
        self.discover()
        return list(self._sources.keys())

    def load(self, name: str) -> SourceBase:
        """
        Look up a source by name.

        Raises:
            KeyError: If no source has that name
        """
        self.discover()
        if name not in self._sources:
            available = ", ".join(self.list())
            raise KeyError(f"Source '{name}' not found. Available sources: {available}")
        return self._sources[name]

    def tags(self) -> Dict[str, str]:
        """Map of source name to tag."""
        self.discover()
        return {name: s.tag for name, s in self._sources.items()}

    def __contains__(self, name: str) -> bool:
        self.discover()
        return name in self._sources

    def __repr__(self) -> str:
        self.discover()
        return f"SourceRegistry(sources={list(self._sources.keys())})"


# Global source registry
sources = SourceRegistry()
