"""Retrieval of published bundles into a local cache."""

import hashlib
import logging
import shutil
import tempfile
from pathlib import Path
from typing import Dict, Optional, Union

import requests

from orthobundle.config import HubConfig
from orthobundle.core.bundle import BUNDLE_FILES, OrthologBundle
from orthobundle.errors import CatalogError, ChecksumError
from orthobundle.hub.catalog import Catalog, CatalogRecord

logger = logging.getLogger(__name__)

_CHUNK = 1024 * 1024


def sha256sum(path: Union[str, Path]) -> str:
    """Hex sha256 of a file."""
    h = hashlib.sha256()
    with open(path, "rb") as handle:
        for chunk in iter(lambda: handle.read(_CHUNK), b""):
            h.update(chunk)
    return h.hexdigest()


def download(location: str, dest: Path, timeout: float = 60.0) -> Path:
    """
    Copy a local file or download an http(s) URL to dest.

    Raises:
        CatalogError: On network errors, non-2xx responses or missing files
    """
    if location.startswith(("http://", "https://")):
        try:
            with requests.get(location, stream=True, timeout=timeout) as resp:
                if resp.status_code // 100 != 2:
                    raise CatalogError(f"HTTP {resp.status_code} for {location}")
                with open(dest, "wb") as out:
                    for chunk in resp.iter_content(chunk_size=_CHUNK):
                        if chunk:
                            out.write(chunk)
        except requests.RequestException as e:
            raise CatalogError(f"Could not download {location}: {e}") from e
    else:
        src = Path(location)
        if not src.is_file():
            raise CatalogError(f"Catalog lists {src} but the file does not exist")
        shutil.copyfile(src, dest)
    return dest


def _verified(record: CatalogRecord, directory: Path) -> bool:
    """True if directory already holds every file of record with matching checksums."""
    for kind, entry in record.files.items():
        path = directory / BUNDLE_FILES[kind]
        if not path.is_file() or sha256sum(path) != entry.sha256:
            return False
    return True


def cache_record(record: CatalogRecord, catalog: Catalog, config: HubConfig) -> Dict[str, Path]:
    """
    Make a verified local copy of a record's files.

    Files are fetched into a scratch directory and only moved into place
    once every checksum matches, so the cache never holds half a bundle.
    A copy that is already present and intact is reused.

    Returns:
        Mapping of table name to cached path
    """
    missing = [k for k in BUNDLE_FILES if k not in record.files]
    if missing:
        raise CatalogError(f"Record {record.id} does not list files: {missing}")

    target = config.cache_dir / record.id
    paths = {kind: target / name for kind, name in BUNDLE_FILES.items()}
    if target.is_dir():
        if _verified(record, target):
            logger.debug(f"Using cached copy of {record.id} at {target}")
            return paths
        logger.warning(f"Cached copy of {record.id} is incomplete or corrupt; refetching")
        shutil.rmtree(target)

    config.cache_dir.mkdir(parents=True, exist_ok=True)
    scratch = Path(tempfile.mkdtemp(prefix=f".{record.id}-", dir=config.cache_dir))
    try:
        for kind, entry in record.files.items():
            dest = scratch / BUNDLE_FILES[kind]
            location = catalog.resolve(entry)
            logger.info(f"Fetching {kind} for {record.id} from {location}")
            download(location, dest, timeout=config.timeout)
            actual = sha256sum(dest)
            if actual != entry.sha256:
                raise ChecksumError(location, entry.sha256, actual)
        try:
            scratch.replace(target)
        except OSError as e:
            # Another process may have filled the cache in the meantime
            if not (target.is_dir() and _verified(record, target)):
                raise CatalogError(f"Could not move {record.id} into cache at {target}: {e}") from e
            logger.debug(f"{record.id} was cached concurrently at {target}")
    finally:
        if scratch.exists():
            shutil.rmtree(scratch)

    return paths


def _open_catalog(catalog: Optional[Catalog], config: HubConfig) -> Catalog:
    if catalog is not None:
        return catalog
    return Catalog.load(config.catalog, timeout=config.timeout)


def fetch_record(
    record_id: str,
    *,
    config: Optional[HubConfig] = None,
    catalog: Optional[Catalog] = None,
) -> OrthologBundle:
    """
    Retrieve a bundle by catalog ID.

    Args:
        record_id: Catalog identifier (e.g. "OBH00001")
        config: Hub settings (default: HubConfig.from_env())
        catalog: Pre-loaded catalog (default: load config.catalog)

    Returns:
        OrthologBundle

    Raises:
        ResourceNotFoundError: If the ID is not in the catalog
    """
    config = config or HubConfig.from_env()
    catalog = _open_catalog(catalog, config)
    record = catalog.get(record_id)
    return _load_record(record, catalog, config)


def fetch_bundle(
    source: str,
    version: Optional[str] = None,
    *,
    config: Optional[HubConfig] = None,
    catalog: Optional[Catalog] = None,
) -> OrthologBundle:
    """
    Retrieve the bundle published for a source and version.

    Read-only and idempotent: repeated calls reuse the local copy.

    Args:
        source: Source name ("string", "oma", "orthodb", ...)
        version: Database release; None selects the latest published
        config: Hub settings (default: HubConfig.from_env())
        catalog: Pre-loaded catalog (default: load config.catalog)

    Returns:
        OrthologBundle

    Raises:
        ResourceNotFoundError: If the source/version pair is unpublished
    """
    config = config or HubConfig.from_env()
    catalog = _open_catalog(catalog, config)
    record = catalog.find(source, version)
    return _load_record(record, catalog, config)


def _load_record(record: CatalogRecord, catalog: Catalog, config: HubConfig) -> OrthologBundle:
    paths = cache_record(record, catalog, config)
    metadata = {
        "title": record.title,
        "description": record.description,
        "created": record.created,
    }
    bundle = OrthologBundle.from_files(
        paths,
        source=record.source,
        version=record.version,
        record_id=record.id,
        metadata=metadata,
    )
    logger.info(
        f"Loaded {record.id} ({record.source} {record.version}): "
        f"{bundle.n_species} species, {bundle.n_groups} groups"
    )
    return bundle
