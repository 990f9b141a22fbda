"""Resource hub: catalog lookup and bundle retrieval."""

from orthobundle.hub.catalog import (
    CATALOG_FILE,
    Catalog,
    CatalogRecord,
    FileEntry,
)
from orthobundle.hub.fetch import (
    cache_record,
    download,
    fetch_bundle,
    fetch_record,
    sha256sum,
)

__all__ = [
    "CATALOG_FILE",
    "Catalog",
    "CatalogRecord",
    "FileEntry",
    "cache_record",
    "download",
    "fetch_bundle",
    "fetch_record",
    "sha256sum",
]
