"""Hub configuration."""

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Optional, Union


def _default_catalog() -> str:
    return str(Path.home() / ".local" / "share" / "orthobundle" / "hub" / "catalog.json")


def _default_cache_dir() -> Path:
    return Path.home() / ".cache" / "orthobundle"


@dataclass(frozen=True)
class HubConfig:
    """
    Where bundles are looked up and cached.

    Attributes:
        catalog: Local path or http(s) URL of the hub's catalog.json
        cache_dir: Directory holding local copies of fetched bundles
        timeout: Network timeout in seconds for each request
    """
    catalog: str = field(default_factory=_default_catalog)
    cache_dir: Path = field(default_factory=_default_cache_dir)
    timeout: float = 60.0

    def __post_init__(self):
        if self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")
        object.__setattr__(self, "cache_dir", Path(self.cache_dir).expanduser())

    @classmethod
    def from_env(cls) -> "HubConfig":
        """
        Build config from ORTHOBUNDLE_* environment variables.

        Recognised variables: ORTHOBUNDLE_CATALOG, ORTHOBUNDLE_CACHE,
        ORTHOBUNDLE_TIMEOUT. Unset variables keep their defaults.
        """
        kwargs = {}
        if os.environ.get("ORTHOBUNDLE_CATALOG"):
            kwargs["catalog"] = os.environ["ORTHOBUNDLE_CATALOG"]
        if os.environ.get("ORTHOBUNDLE_CACHE"):
            kwargs["cache_dir"] = Path(os.environ["ORTHOBUNDLE_CACHE"])
        if os.environ.get("ORTHOBUNDLE_TIMEOUT"):
            try:
                kwargs["timeout"] = float(os.environ["ORTHOBUNDLE_TIMEOUT"])
            except ValueError:
                raise ValueError(
                    f"ORTHOBUNDLE_TIMEOUT must be a number, got {os.environ['ORTHOBUNDLE_TIMEOUT']!r}"
                )
        return cls(**kwargs)

    def with_overrides(
        self,
        catalog: Optional[str] = None,
        cache_dir: Optional[Union[str, Path]] = None,
        timeout: Optional[float] = None,
    ) -> "HubConfig":
        """Return a copy with any non-None argument replaced."""
        changes = {}
        if catalog is not None:
            changes["catalog"] = str(catalog)
        if cache_dir is not None:
            changes["cache_dir"] = Path(cache_dir)
        if timeout is not None:
            changes["timeout"] = timeout
        return replace(self, **changes)

    @property
    def is_remote(self) -> bool:
        return self.catalog.startswith(("http://", "https://"))
