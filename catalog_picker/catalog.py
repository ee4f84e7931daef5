from __future__ import annotations

import hashlib
import os
import string
from pathlib import Path
from random import Random
from typing import List, Optional, Tuple

from catalog_picker.models import CatalogEntry


_ALPHANUMERIC = string.ascii_letters + string.digits

FINGERPRINT_LEN = 64


def _rand_string(rng: Random, length: Optional[int] = None) -> str:
    if length is None:
        length = rng.randrange(5, 30)
    return "".join(rng.choice(_ALPHANUMERIC) for _ in range(length))


def sample_catalog(count: int = 20, *, rng: Optional[Random] = None) -> Tuple[CatalogEntry, ...]:
    """
    Generate a catalog of random entries for demos.

    Names are unique; the returned order is the order the picker will show.
    """
    rng = rng or Random()
    seen = set()
    out: List[CatalogEntry] = []
    while len(out) < max(0, count):
        name = _rand_string(rng)
        if name in seen:
            continue
        seen.add(name)
        out.append(
            CatalogEntry(
                name=name,
                size=rng.randrange(100, 1_000_000),
                fingerprint=_rand_string(rng, FINGERPRINT_LEN),
            )
        )
    return tuple(out)


def sha256_file(path: Path, *, chunk_size: int = 1024 * 1024) -> str:
    h = hashlib.sha256()
    with path.open("rb") as f:
        while True:
            chunk = f.read(chunk_size)
            if not chunk:
                break
            h.update(chunk)
    return h.hexdigest()


def display_name(path: Path) -> str:
    """
    File name as printable text. Bytes that are not valid UTF-8 are shown as
    `\\xNN` escapes instead of lone surrogates, which no output stream accepts.
    """
    return os.fsencode(path.name).decode("utf-8", "backslashreplace")


def scan_directory(root: Path) -> Tuple[CatalogEntry, ...]:
    """
    Build a catalog from the regular files directly under `root`, sorted by name.
    """
    out: List[CatalogEntry] = []
    for p in sorted(root.iterdir(), key=lambda p: p.name):
        if not p.is_file():
            continue
        out.append(CatalogEntry(name=display_name(p), size=p.stat().st_size, fingerprint=sha256_file(p)))
    return tuple(out)
