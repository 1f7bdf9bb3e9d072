"""
Catalog loading.

Reads a cached ``formula.json`` snapshot in a single pass and turns it into a
list of Formula records. Either the whole catalog loads or an error is raised.
"""

import json
import time
from pathlib import Path
from typing import List, Union

from .error_handling import (
    CatalogIOError,
    CatalogParseError,
    log_filesystem_error,
    log_parsing_error,
)
from .formula import Formula
from .structured_logging import log_catalog_loaded


def load_catalog(file_path: Union[str, Path]) -> List[Formula]:
    """
    Load every formula from a catalog snapshot.

    Args:
        file_path: Path to the cached JSON catalog

    Returns:
        List[Formula]: Formulas in file order

    Raises:
        CatalogIOError: If the file cannot be opened or read
        CatalogParseError: If the content is not valid JSON or does not match
            the formula schema
    """
    start_time = time.time()
    path = Path(file_path)

    try:
        with open(path, encoding="utf-8") as f:
            raw_catalog = json.load(f)
    except json.JSONDecodeError as e:
        log_parsing_error(
            "Catalog is not valid JSON", "catalog", "load_catalog",
            file_path=str(path), exception=e,
        )
        raise CatalogParseError(f"Invalid JSON in {path}: {e}") from e
    except UnicodeDecodeError as e:
        log_parsing_error(
            "Catalog is not UTF-8 text", "catalog", "load_catalog",
            file_path=str(path), exception=e,
        )
        raise CatalogParseError(f"Catalog {path} is not valid UTF-8: {e}") from e
    except OSError as e:
        log_filesystem_error(
            "Cannot read catalog", "catalog", "load_catalog",
            file_path=str(path), exception=e,
        )
        raise CatalogIOError(f"Cannot read catalog {path}: {e}") from e

    if not isinstance(raw_catalog, list):
        message = f"Catalog {path} must contain a JSON array of formulas"
        log_parsing_error(message, "catalog", "load_catalog", file_path=str(path))
        raise CatalogParseError(message)

    formulas = []
    for index, entry in enumerate(raw_catalog):
        try:
            formulas.append(Formula.from_dict(entry))
        except CatalogParseError as e:
            log_parsing_error(
                str(e), "catalog", "load_catalog",
                file_path=str(path), entry_index=index, exception=e,
            )
            raise CatalogParseError(f"Catalog entry {index}: {e}") from e

    duration_ms = int((time.time() - start_time) * 1000)
    log_catalog_loaded(str(path), len(formulas), duration_ms)
    return formulas
