"""
Demo acquisition: download a (gzipped) demo and produce a local .dem path.

Any failure here is fatal for the run and surfaces as AcquisitionError.
"""

from __future__ import annotations

import gzip
import logging
import os
import shutil
from pathlib import Path

import httpx

from matchlens.errors import AcquisitionError

logger = logging.getLogger(__name__)

GZIP_MAGIC = b"\x1f\x8b"
CHUNK_SIZE = 1024 * 1024


def download_file(
    url: str,
    out_path: Path,
    client: httpx.Client | None = None,
    timeout: float = 120.0,
) -> Path:
    """Stream ``url`` to ``out_path``."""
    out_path.parent.mkdir(parents=True, exist_ok=True)
    owns_client = client is None
    client = client or httpx.Client(timeout=timeout, follow_redirects=True)

    try:
        with client.stream("GET", url) as response:
            response.raise_for_status()
            with open(out_path, "wb") as f:
                for chunk in response.iter_bytes(CHUNK_SIZE):
                    f.write(chunk)
    except (httpx.HTTPError, OSError) as e:
        out_path.unlink(missing_ok=True)
        raise AcquisitionError(f"Download of {url} failed: {e}") from e
    finally:
        if owns_client:
            client.close()

    logger.info(f"Downloaded {url} -> {out_path} ({out_path.stat().st_size} bytes)")
    return out_path


def is_gzip(path: Path) -> bool:
    with open(path, "rb") as f:
        return f.read(2) == GZIP_MAGIC


def gunzip(path: Path) -> Path:
    """Decompress ``<name>.gz`` next to itself as ``<name>``; the archive is removed."""
    if path.suffix.lower() != ".gz":
        raise AcquisitionError(f"Not a .gz file: {path}")

    out_path = path.with_suffix("")
    try:
        with gzip.open(path, "rb") as f_in, open(out_path, "wb") as f_out:
            shutil.copyfileobj(f_in, f_out)
    except (OSError, EOFError) as e:
        out_path.unlink(missing_ok=True)
        raise AcquisitionError(f"Failed to decompress {path}: {e}") from e

    path.unlink()
    return out_path


def acquire_demo(
    url: str,
    match_id: str,
    work_dir: str | Path = ".",
    client: httpx.Client | None = None,
    timeout: float = 120.0,
) -> Path:
    """
    Download the demo of ``match_id`` and return the path of the .dem file.

    The download lands in ``<work_dir>/<match_id>-demo.dem.gz``. Gzipped
    downloads are decompressed to ``<match_id>-demo.dem``; plain demos are
    renamed to that path.
    """
    work_dir = Path(work_dir)
    archive = work_dir / f"{match_id}-demo.dem.gz"
    download_file(url, archive, client=client, timeout=timeout)

    if is_gzip(archive):
        return gunzip(archive)

    logger.debug(f"{archive.name} is not gzipped, using it as-is")
    dem_path = archive.with_suffix("")
    os.replace(archive, dem_path)
    return dem_path
