"""
Process-wide lookup tables for the 5-card evaluator.

The tables are built once per process, or read from a versioned ``.npz``
asset, and never modified afterwards. The asset location can be passed to
``load_tables`` or set with the ``POKERRANK_TABLES`` environment variable.
"""

import hashlib
import logging
import os
import threading
import zipfile
import zlib
from typing import Dict, NamedTuple, Optional

import jax.numpy as jnp
import numpy as np

from . import builder

logger = logging.getLogger(__name__)

TABLES_ENV_VAR = "POKERRANK_TABLES"
FORMAT_VERSION = 1

# Order matters for the digest
TABLE_NAMES = ("primes", "flushes", "unique", "hash_adjust", "hash_values")
_TABLE_DTYPES = {
    "primes": np.uint32,
    "flushes": np.uint16,
    "unique": np.uint16,
    "hash_adjust": np.uint16,
    "hash_values": np.uint16,
}


class LookupTables(NamedTuple):
    """Device arrays used by the evaluator. A NamedTuple, so also a JAX pytree."""
    primes: jnp.ndarray
    flushes: jnp.ndarray
    unique: jnp.ndarray
    hash_adjust: jnp.ndarray
    hash_values: jnp.ndarray


def tables_digest(arrays: Dict[str, np.ndarray]) -> str:
    """SHA-256 over the table contents, used as the asset's content address."""
    h = hashlib.sha256()
    for name in TABLE_NAMES:
        data = np.ascontiguousarray(arrays[name], dtype=_TABLE_DTYPES[name])
        h.update(name.encode("ascii"))
        h.update(data.tobytes())
    return h.hexdigest()


def to_lookup_tables(arrays: Dict[str, np.ndarray]) -> LookupTables:
    """Convert numpy tables to the evaluator's device arrays."""
    return LookupTables(
        primes=jnp.asarray(arrays["primes"], dtype=jnp.uint32),
        flushes=jnp.asarray(arrays["flushes"], dtype=jnp.int32),
        unique=jnp.asarray(arrays["unique"], dtype=jnp.int32),
        hash_adjust=jnp.asarray(arrays["hash_adjust"], dtype=jnp.uint32),
        hash_values=jnp.asarray(arrays["hash_values"], dtype=jnp.int32),
    )


def save_tables(path: str, arrays: Optional[Dict[str, np.ndarray]] = None) -> str:
    """
    Write the tables to a ``.npz`` asset.

    Args:
        path: Destination file
        arrays: Tables to write, built from scratch when omitted

    Returns:
        Digest of the written tables
    """
    if arrays is None:
        arrays = builder.build_all()
    digest = tables_digest(arrays)
    with open(path, "wb") as f:
        np.savez_compressed(
            f,
            format_version=np.int32(FORMAT_VERSION),
            digest=np.array(digest),
            **{name: np.asarray(arrays[name], dtype=_TABLE_DTYPES[name]) for name in TABLE_NAMES},
        )
    logger.info("Wrote lookup tables to %s (sha256 %s)", path, digest)
    return digest


def read_tables(path: str) -> Dict[str, np.ndarray]:
    """
    Read a ``.npz`` asset and verify its version and digest.

    Raises:
        ValueError: if the asset is not a readable archive, is from another
            format version, is missing a table or its digest, or its contents
            do not match the stored digest
    """
    try:
        with np.load(path, allow_pickle=False) as data:
            version = int(data["format_version"]) if "format_version" in data else None
            if version != FORMAT_VERSION:
                raise ValueError(f"Unsupported table format version in {path}: {version}")
            missing = [name for name in TABLE_NAMES + ("digest",) if name not in data]
            if missing:
                raise ValueError(f"Table asset {path} is missing {', '.join(missing)}")
            arrays = {name: np.array(data[name], dtype=_TABLE_DTYPES[name]) for name in TABLE_NAMES}
            stored = str(data["digest"])
    except (zipfile.BadZipFile, EOFError, KeyError, zlib.error) as e:
        raise ValueError(f"Table asset {path} is unreadable: {e}") from e

    digest = tables_digest(arrays)
    if digest != stored:
        raise ValueError(f"Table asset {path} is corrupt: sha256 {digest} != {stored}")
    return arrays


_tables: Optional[LookupTables] = None
_digest: Optional[str] = None
_lock = threading.Lock()


def loaded_digest() -> Optional[str]:
    """Digest of the process-wide tables, None before they are loaded."""
    return _digest


def load_tables(path: Optional[str] = None) -> LookupTables:
    """
    Return the process-wide lookup tables, initialising them on first use.

    The first call reads ``path`` (or ``$POKERRANK_TABLES``) when given and
    valid, otherwise builds the tables in-process. Later calls return the
    same object regardless of ``path``.
    """
    global _tables, _digest
    if _tables is not None:
        return _tables

    with _lock:
        if _tables is None:
            arrays = _initial_arrays(path)
            _digest = tables_digest(arrays)
            _tables = to_lookup_tables(arrays)
    return _tables


def _initial_arrays(path: Optional[str]) -> Dict[str, np.ndarray]:
    path = path or os.environ.get(TABLES_ENV_VAR)
    if path:
        if os.path.exists(path):
            try:
                arrays = read_tables(path)
            except (OSError, ValueError) as e:
                logger.warning("Ignoring lookup table asset %s: %s", path, e)
            else:
                logger.info("Loaded lookup tables from %s", path)
                return arrays
        else:
            logger.warning("Lookup table asset %s not found, building tables", path)
    return builder.build_all()
