"""
Resource catalog of published bundles.

A hub is a directory (or a web server mirroring one) holding
catalog.json next to one snapshot directory per record. The catalog maps
record IDs and (source, version) pairs to the snapshot's files and their
sha256 checksums.
"""

import json
import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Union
from urllib.parse import urljoin

import requests

from orthobundle.errors import CatalogError, ResourceNotFoundError

logger = logging.getLogger(__name__)

CATALOG_FILE = "catalog.json"
RECORD_PREFIX = "OBH"


@dataclass(frozen=True)
class FileEntry:
    """One published file: path relative to the catalog, and its sha256."""
    path: str
    sha256: str


@dataclass(frozen=True)
class CatalogRecord:
    """
    Catalog entry for one immutable bundle snapshot.

    Attributes:
        id: Catalog identifier (e.g. "OBH00001")
        source: Source name
        version: Database release
        files: Keys "species", "groups", "mappings", "tree"
        title: Short description
        description: Longer provenance note
        created: ISO-8601 publication timestamp
        n_species, n_groups, n_mappings: Table sizes
    """
    id: str
    source: str
    version: str
    files: Dict[str, FileEntry]
    title: str = ""
    description: str = ""
    created: str = ""
    n_species: int = 0
    n_groups: int = 0
    n_mappings: int = 0

    @classmethod
    def from_dict(cls, data: dict) -> "CatalogRecord":
        try:
            files = {k: FileEntry(**v) for k, v in data["files"].items()}
            return cls(
                id=data["id"],
                source=data["source"],
                version=str(data["version"]),
                files=files,
                title=data.get("title", ""),
                description=data.get("description", ""),
                created=data.get("created", ""),
                n_species=int(data.get("n_species", 0)),
                n_groups=int(data.get("n_groups", 0)),
                n_mappings=int(data.get("n_mappings", 0)),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise CatalogError(f"Malformed catalog record {data.get('id', '?')!r}: {e}") from e

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class Catalog:
    """
    In-memory view of a hub's catalog.json.

    Attributes:
        records: Records in publication order
        location: Where the catalog was loaded from (path or URL)
    """
    records: List[CatalogRecord] = field(default_factory=list)
    location: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict, location: Optional[str] = None) -> "Catalog":
        if not isinstance(data, dict) or not isinstance(data.get("records"), list):
            raise CatalogError(f"Catalog at {location} has no 'records' list")
        return cls(
            records=[CatalogRecord.from_dict(r) for r in data["records"]],
            location=location,
        )

    @classmethod
    def load(cls, location: Union[str, Path], timeout: float = 60.0) -> "Catalog":
        """
        Read a catalog from a local path or an http(s) URL.

        Raises:
            CatalogError: If the catalog cannot be read or parsed
        """
        location = str(location)
        if location.startswith(("http://", "https://")):
            logger.debug(f"Fetching catalog {location}")
            try:
                resp = requests.get(location, timeout=timeout)
            except requests.RequestException as e:
                raise CatalogError(f"Could not fetch catalog {location}: {e}") from e
            if resp.status_code // 100 != 2:
                raise CatalogError(f"HTTP {resp.status_code} fetching catalog {location}")
            try:
                data = resp.json()
            except ValueError as e:
                raise CatalogError(f"Invalid JSON in catalog {location}: {e}") from e
        else:
            path = Path(location).expanduser()
            if not path.exists():
                raise CatalogError(f"No catalog at {path}")
            try:
                text = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                raise CatalogError(f"Could not read catalog {path}: {e}") from e
            try:
                data = json.loads(text)
            except json.JSONDecodeError as e:
                raise CatalogError(f"Invalid JSON in catalog {path}: {e}") from e
            location = str(path)

        return cls.from_dict(data, location=location)

    @classmethod
    def open_hub(cls, hub_dir: Union[str, Path]) -> "Catalog":
        """Load a local hub's catalog, or start an empty one if there is none yet."""
        path = Path(hub_dir) / CATALOG_FILE
        if path.exists():
            return cls.load(path)
        return cls(location=str(path))

    @property
    def is_remote(self) -> bool:
        return bool(self.location) and self.location.startswith(("http://", "https://"))

    def get(self, record_id: str) -> CatalogRecord:
        """
        Look up a record by catalog ID.

        Raises:
            ResourceNotFoundError
        """
        for record in self.records:
            if record.id == record_id:
                return record
        raise ResourceNotFoundError(f"No catalog record with ID '{record_id}'")

    def find(self, source: str, version: Optional[str] = None) -> CatalogRecord:
        """
        Look up a record by source and version.

        Args:
            source: Source name
            version: Release; None selects the most recently published one

        Raises:
            ResourceNotFoundError: If the source or version is unpublished
        """
        candidates = self.query(source)
        if not candidates:
            raise ResourceNotFoundError(f"No bundles published for source '{source}'")
        if version is None:
            return candidates[-1]
        for record in candidates:
            if record.version == str(version):
                return record
        available = ", ".join(r.version for r in candidates)
        raise ResourceNotFoundError(
            f"Version '{version}' of '{source}' is not published. Available: {available}"
        )

    def query(self, source: Optional[str] = None) -> List[CatalogRecord]:
        """Records in publication order, optionally limited to one source."""
        if source is None:
            return list(self.records)
        return [r for r in self.records if r.source == source]

    def versions(self, source: str) -> List[str]:
        return [r.version for r in self.query(source)]

    def next_id(self) -> str:
        numbers = [
            int(r.id[len(RECORD_PREFIX):])
            for r in self.records
            if r.id.startswith(RECORD_PREFIX) and r.id[len(RECORD_PREFIX):].isdigit()
        ]
        return f"{RECORD_PREFIX}{max(numbers, default=0) + 1:05d}"

    def add(self, record: CatalogRecord) -> None:
        """
        Append a record.

        Raises:
            ValueError: If the ID or the (source, version) pair already exists
        """
        for existing in self.records:
            if existing.id == record.id:
                raise ValueError(f"Catalog already has a record with ID '{record.id}'")
            if existing.source == record.source and existing.version == record.version:
                raise ValueError(
                    f"{record.source} {record.version} is already published as {existing.id}"
                )
        self.records.append(record)

    def resolve(self, entry: FileEntry) -> str:
        """Absolute path or URL of a file listed in this catalog."""
        if self.location is None:
            raise CatalogError("Catalog has no location to resolve files against")
        if self.is_remote:
            return urljoin(self.location, entry.path)
        return str(Path(self.location).parent / entry.path)

    def to_dict(self) -> dict:
        return {"records": [r.to_dict() for r in self.records]}

    def save(self, path: Optional[Union[str, Path]] = None) -> Path:
        """Write catalog.json (to its own location unless path is given)."""
        target = path or self.location
        if target is None or (self.is_remote and path is None):
            raise CatalogError("Catalog location is not a writable path")
        target = Path(target)
        tmp = target.with_name(target.name + ".tmp")
        tmp.write_text(json.dumps(self.to_dict(), indent=2) + "\n", encoding="utf-8")
        tmp.replace(target)
        return target

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[CatalogRecord]:
        return iter(self.records)

    def __contains__(self, record_id: str) -> bool:
        return any(r.id == record_id for r in self.records)
