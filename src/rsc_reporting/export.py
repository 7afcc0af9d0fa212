"""CSV and JSON export of records and roll-ups."""

import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import pandas as pd
from pydantic import BaseModel

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = (".csv", ".json")


def to_dataframe(data: Any) -> pd.DataFrame:
    """Records (models with ``to_row``), dicts, or a DataFrame as a DataFrame."""
    if isinstance(data, pd.DataFrame):
        return data
    rows: list[dict[str, Any]] = []
    for item in data if isinstance(data, Iterable) else []:
        if isinstance(item, BaseModel):
            rows.append(item.model_dump(by_alias=True))
        else:
            rows.append(dict(item))
    return pd.DataFrame(rows)


def write_csv(data: Any, output_path: Path) -> Path:
    df = to_dataframe(data)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(output_path, index=False)
    return output_path


def write_json(data: Any, output_path: Path) -> Path:
    df = to_dataframe(data)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    df.to_json(output_path, orient="records", date_format="iso", indent=2)
    return output_path


def write_records(data: Any, output_path: Path | str) -> Path:
    """
    Write records to *output_path*, choosing the format from its suffix.

    Raises:
        ValueError: If the suffix is not ``.csv`` or ``.json``
    """
    path = Path(output_path).expanduser()
    suffix = path.suffix.lower()
    if suffix == ".csv":
        write_csv(data, path)
    elif suffix == ".json":
        write_json(data, path)
    else:
        raise ValueError(
            f"Unsupported output format '{suffix or path.name}'. "
            f"Use one of: {', '.join(SUPPORTED_FORMATS)}"
        )
    logger.info(f"Wrote {path}")
    return path
