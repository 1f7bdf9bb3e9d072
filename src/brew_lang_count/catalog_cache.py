"""
Local cache of the Homebrew core catalog.

The snapshot lives in a single file. ``ensure_fresh`` is the one entry point
callers need: it checks the file age and downloads a new copy when the file
is missing, unreadable or older than the staleness window.
"""

import os
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

import httpx
from rich.console import Console

from .cli_config import get_config
from .error_handling import CatalogIOError, log_filesystem_error, log_network_error
from .structured_logging import (
    log_cache_fresh,
    log_download_complete,
    log_download_started,
)

stderr_console = Console(stderr=True)

PathLike = Union[str, Path]


@dataclass
class CacheStatus:
    """Snapshot file state as reported by ``cache status``."""

    file_path: str
    exists: bool
    size_bytes: Optional[int] = None
    age_seconds: Optional[float] = None
    is_stale: bool = True


def _file_age_seconds(path: Path, now: Optional[float] = None) -> Optional[float]:
    try:
        modified = path.stat().st_mtime
    except OSError:
        return None
    return (time.time() if now is None else now) - modified


def is_stale(
    file_path: PathLike, max_age_seconds: float, now: Optional[float] = None
) -> bool:
    """
    Check whether the snapshot must be downloaded again.

    Args:
        file_path: Snapshot location
        max_age_seconds: Staleness window
        now: Reference timestamp, defaults to the current time

    Returns:
        bool: True if the file is missing, unreadable or older than the window
    """
    path = Path(file_path)
    if not path.is_file() or not os.access(path, os.R_OK):
        return True

    age = _file_age_seconds(path, now)
    return age is None or age > max_age_seconds


def cache_status(file_path: PathLike, max_age_seconds: Optional[float] = None) -> CacheStatus:
    """Describe the snapshot file without touching the network."""
    if max_age_seconds is None:
        max_age_seconds = get_config().catalog.max_age_seconds

    path = Path(file_path)
    if not path.is_file():
        return CacheStatus(file_path=str(path), exists=False)

    try:
        size_bytes = path.stat().st_size
    except OSError:
        size_bytes = None

    return CacheStatus(
        file_path=str(path),
        exists=True,
        size_bytes=size_bytes,
        age_seconds=_file_age_seconds(path),
        is_stale=is_stale(path, max_age_seconds),
    )


def _default_file_mode() -> int:
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


def _build_client() -> httpx.Client:
    network = get_config().network
    timeout = httpx.Timeout(network.read_timeout, connect=network.connect_timeout)
    return httpx.Client(
        timeout=timeout,
        headers={"User-Agent": network.user_agent},
        follow_redirects=True,
    )


def download_catalog(
    file_path: PathLike,
    url: Optional[str] = None,
    client: Optional[httpx.Client] = None,
) -> int:
    """
    Download the catalog and replace ``file_path`` with it.

    The response body is streamed into a temporary file next to the target,
    which is moved into place only once the whole body has been written.

    Args:
        file_path: Snapshot location
        url: Catalog endpoint, defaults to the configured one
        client: HTTP client to use; one is created (and closed) when omitted

    Returns:
        int: Number of bytes written

    Raises:
        CatalogIOError: If the endpoint cannot be reached, answers with an
            error status, or the file cannot be written
    """
    if url is None:
        url = get_config().catalog.api_url

    path = Path(file_path)
    start_time = time.time()
    log_download_started(url, str(path))

    owns_client = client is None
    if client is None:
        client = _build_client()

    temp_path = None
    try:
        with client.stream("GET", url) as response:
            response.raise_for_status()
            with tempfile.NamedTemporaryFile(
                "wb", dir=path.parent, prefix=f".{path.name}.", delete=False
            ) as output:
                temp_path = Path(output.name)
                for chunk in response.iter_bytes():
                    output.write(chunk)
                size_bytes = output.tell()
        # Temporary files are created 0600; give the snapshot regular file permissions.
        os.chmod(temp_path, _default_file_mode())
        os.replace(temp_path, path)
        temp_path = None
    except httpx.HTTPStatusError as e:
        log_network_error(
            "Catalog endpoint returned an error status",
            "catalog_cache",
            "download_catalog",
            url=url,
            status_code=e.response.status_code,
            exception=e,
        )
        raise CatalogIOError(
            f"Can not download catalog: HTTP {e.response.status_code} from {url}"
        ) from e
    except httpx.HTTPError as e:
        log_network_error(
            "Can not reach catalog endpoint",
            "catalog_cache",
            "download_catalog",
            url=url,
            exception=e,
        )
        raise CatalogIOError(f"Can not reach API endpoint {url}: {e}") from e
    except OSError as e:
        log_filesystem_error(
            "Error writing catalog file",
            "catalog_cache",
            "download_catalog",
            file_path=str(path),
            exception=e,
        )
        raise CatalogIOError(f"Error writing catalog to {path}: {e}") from e
    finally:
        if temp_path is not None:
            temp_path.unlink(missing_ok=True)
        if owns_client:
            client.close()

    duration_ms = int((time.time() - start_time) * 1000)
    log_download_complete(str(path), size_bytes, duration_ms)
    stderr_console.print(
        f"Successfully written JSON data into {path}",
        markup=False,
        highlight=False,
        soft_wrap=True,
    )
    return size_bytes


def ensure_fresh(
    file_path: PathLike,
    max_age_seconds: Optional[float] = None,
    url: Optional[str] = None,
    client: Optional[httpx.Client] = None,
    force: bool = False,
) -> bool:
    """
    Make sure a fresh catalog snapshot exists at ``file_path``.

    Args:
        file_path: Snapshot location
        max_age_seconds: Staleness window, defaults to the configured 7 days
        url: Catalog endpoint, defaults to the configured one
        client: HTTP client used if a download is needed
        force: Download even if the snapshot is fresh

    Returns:
        bool: True if a new snapshot was downloaded

    Raises:
        CatalogIOError: If a needed download fails
    """
    if max_age_seconds is None:
        max_age_seconds = get_config().catalog.max_age_seconds

    if not force and not is_stale(file_path, max_age_seconds):
        log_cache_fresh(str(file_path), _file_age_seconds(Path(file_path)))
        return False

    download_catalog(file_path, url=url, client=client)
    return True
