from statdeck.db.engine import SCHEMA_VERSION, StorageEngine, validate_record
from statdeck.db.operations import (
    Collection,
    Record,
    clear_rows,
    count_rows,
    delete_row,
    get_all_rows,
    get_row,
    record_to_row,
    row_to_record,
    upsert_row,
)

__all__ = [
    "Collection",
    "Record",
    "SCHEMA_VERSION",
    "StorageEngine",
    "clear_rows",
    "count_rows",
    "delete_row",
    "get_all_rows",
    "get_row",
    "record_to_row",
    "row_to_record",
    "upsert_row",
    "validate_record",
]
