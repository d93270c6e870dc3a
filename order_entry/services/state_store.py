"""
State Store
===========

File-backed persistence for the catalog, the order lines and the line-id
counter. Each key is one JSON file in the state directory, written via a
temporary file and an atomic rename; the last write wins.

Storage problems never propagate into the order book: failed writes are
logged and reported as False, unreadable or corrupt files load as None.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Final

from pydantic import ValidationError

from order_entry.schemas.domain import (
    OrderLine,
    OrderSnapshot,
    Product,
    dump_products,
    load_products,
)
from order_entry.utils.logger import get_logger

logger = get_logger(__name__)

CATALOG_KEY: Final[str] = "catalog"
ROWS_KEY: Final[str] = "rows"
COUNTER_KEY: Final[str] = "rowIdCounter"


class StateStore:
    """
    Keyed JSON files under one directory.

    Example:
        store = StateStore(".order_entry", prefix="pedidomaslog")
        store.save_order(book.snapshot())
        snapshot = store.load_order()
    """

    def __init__(self, directory: str | Path, prefix: str = "pedidomaslog") -> None:
        self._directory = Path(directory)
        self._prefix = prefix

    def path_for(self, key: str) -> Path:
        return self._directory / f"{self._prefix}_{key}.json"

    # -------------------------------------------------------------------------
    # Catalog
    # -------------------------------------------------------------------------

    def save_catalog(self, products: list[Product]) -> bool:
        return self._write(CATALOG_KEY, dump_products(products))

    def load_catalog(self) -> list[Product] | None:
        payload = self._read(CATALOG_KEY)
        if payload is None:
            return None
        try:
            return load_products(payload)
        except ValidationError as e:
            logger.warning("Discarding unreadable saved catalog", error=str(e))
            return None

    def clear_catalog(self) -> None:
        self.path_for(CATALOG_KEY).unlink(missing_ok=True)

    # -------------------------------------------------------------------------
    # Order
    # -------------------------------------------------------------------------

    def save_order(self, snapshot: OrderSnapshot) -> bool:
        """Persist the lines and the id counter as two keys."""
        rows = json.dumps(
            [line.model_dump(mode="json") for line in snapshot.lines],
            ensure_ascii=False,
        )
        saved_rows = self._write(ROWS_KEY, rows)
        saved_counter = self._write(COUNTER_KEY, json.dumps(snapshot.row_id_counter))
        return saved_rows and saved_counter

    def load_order(self) -> OrderSnapshot | None:
        """
        Load saved lines and counter.

        Returns:
            The snapshot, or None if no lines were saved or they are unreadable
        """
        rows_payload = self._read(ROWS_KEY)
        if rows_payload is None:
            return None

        counter_payload = self._read(COUNTER_KEY)
        try:
            lines = [OrderLine.model_validate(row) for row in json.loads(rows_payload)]
            counter = int(json.loads(counter_payload)) if counter_payload else 0
        except (ValueError, TypeError, ValidationError) as e:
            logger.warning("Discarding unreadable saved order", error=str(e))
            return None

        return OrderSnapshot(lines=lines, row_id_counter=max(counter, 0))

    # -------------------------------------------------------------------------
    # Files
    # -------------------------------------------------------------------------

    def _write(self, key: str, payload: str) -> bool:
        target = self.path_for(key)
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self._directory,
                prefix=f".{target.stem}.",
                suffix=".tmp",
                delete=False,
            ) as handle:
                handle.write(payload)
                temp_name = handle.name
            os.replace(temp_name, target)
        except OSError as e:
            logger.error("Failed to save state", key=key, path=str(target), error=str(e))
            return False
        return True

    def _read(self, key: str) -> str | None:
        target = self.path_for(key)
        try:
            return target.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning("Failed to read state", key=key, path=str(target), error=str(e))
            return None
