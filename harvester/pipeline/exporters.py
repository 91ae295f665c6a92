"""
Data Exporters Module

Writes a ResultTable to disk as JSON, JSON Lines, CSV or SQLite.
Column order is the table's own; absent values become null / empty cells.
"""

import csv
import io
import json
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List

import aiofiles
import aiosqlite

from harvester.config import config
from harvester.pipeline.records import ResultTable


class BaseExporter(ABC):
    """
    Shared export flow: resolve the target path, refuse empty tables where
    the format has no way to describe them, then hand over to ``_write``.
    """

    extension = ""
    allow_empty = True

    def __init__(self, export_dir: Path | str | None = None):
        """
        Args:
            export_dir: Target directory (default from config)
        """
        self._export_dir = Path(export_dir) if export_dir else None

    @property
    def export_dir(self) -> Path:
        return self._export_dir or config.storage.export_path

    def default_filename(self) -> str:
        stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        return f"harvest_{stamp}.{self.extension}"

    async def export(self, table: ResultTable, filename: str | None = None) -> str:
        """
        Write a table to a file under the export directory.

        Args:
            table: Records to export
            filename: Target filename (generated if None)

        Returns:
            Path of the written file

        Raises:
            ValueError: If the table is empty and the format needs rows
        """
        if not len(table) and not self.allow_empty:
            raise ValueError(f"No data to export as {self.extension}")

        target_dir = self.export_dir
        target_dir.mkdir(parents=True, exist_ok=True)
        path = target_dir / (filename or self.default_filename())

        await self._write(path, table)
        return str(path)

    @abstractmethod
    async def _write(self, path: Path, table: ResultTable) -> None:
        ...


class JSONExporter(BaseExporter):
    """
    JSON array of records, or one record per line with ``jsonl=True``.

    Example:
        path = await JSONExporter(jsonl=True).export(table)
    """

    def __init__(
        self,
        pretty: bool = True,
        jsonl: bool = False,
        export_dir: Path | str | None = None,
    ):
        super().__init__(export_dir)
        self._pretty = pretty
        self._jsonl = jsonl
        self.extension = "jsonl" if jsonl else "json"

    def render(self, table: ResultTable) -> str:
        records = table.to_dicts()
        if self._jsonl:
            return "".join(
                json.dumps(record, ensure_ascii=False, default=str) + "\n"
                for record in records
            )
        return json.dumps(
            records,
            indent=2 if self._pretty else None,
            ensure_ascii=False,
            default=str,
        )

    async def _write(self, path: Path, table: ResultTable) -> None:
        async with aiofiles.open(path, "w", encoding="utf-8") as f:
            await f.write(self.render(table))


class CSVExporter(BaseExporter):
    """
    Export records to CSV.

    Groups are spread over ``parent_child`` columns and lists are stored
    as JSON text, so every cell is a scalar.

    Example:
        exporter = CSVExporter(delimiter=";")
        path = await exporter.export(table)
    """

    extension = "csv"
    allow_empty = False

    def __init__(
        self,
        delimiter: str = ",",
        include_headers: bool = True,
        export_dir: Path | str | None = None,
    ):
        """
        Args:
            delimiter: Field delimiter
            include_headers: Write the header row
            export_dir: Target directory (default from config)
        """
        super().__init__(export_dir)
        self._delimiter = delimiter
        self._include_headers = include_headers

    def _flatten(self, record: Dict[str, Any], prefix: str = "") -> Dict[str, Any]:
        flat: Dict[str, Any] = {}
        for key, value in record.items():
            column = f"{prefix}_{key}" if prefix else key
            if isinstance(value, dict):
                flat.update(self._flatten(value, column))
            elif isinstance(value, list):
                flat[column] = json.dumps(value, ensure_ascii=False)
            else:
                flat[column] = value
        return flat

    def render(self, table: ResultTable) -> str:
        """Render the table as CSV text."""
        flat_table = ResultTable(tuple(self._flatten(r) for r in table.records))

        buffer = io.StringIO()
        writer = csv.writer(buffer, delimiter=self._delimiter)
        if self._include_headers:
            writer.writerow(flat_table.columns)
        writer.writerows(flat_table.rows())
        return buffer.getvalue()

    async def _write(self, path: Path, table: ResultTable) -> None:
        async with aiofiles.open(path, "w", encoding="utf-8", newline="") as f:
            await f.write(self.render(table))


class SQLiteExporter(BaseExporter):
    """
    Export records into a SQLite table, one row per record.

    Column types come from the first non-null value of each column.
    Groups and lists are stored as JSON text. Repeated exports append
    unless ``replace`` is set.

    Example:
        path = await SQLiteExporter(table_name="quotes").export(table)
    """

    extension = "db"
    allow_empty = False

    SQL_TYPES = ((bool, "INTEGER"), (int, "INTEGER"), (float, "REAL"))

    def __init__(
        self,
        table_name: str = "records",
        db_name: str | None = None,
        replace: bool = False,
        export_dir: Path | str | None = None,
    ):
        """
        Args:
            table_name: Table to create or append to
            db_name: Database filename (default from config)
            replace: Drop the table before writing
            export_dir: Target directory (default from config)
        """
        super().__init__(export_dir)
        self._table_name = table_name
        self._db_name = db_name or config.storage.sqlite_db_name
        self._replace = replace

    def default_filename(self) -> str:
        return self._db_name

    def _sql_type(self, table: ResultTable, column: str) -> str:
        sample = next((r[column] for r in table.records if r.get(column) is not None), None)
        for py_type, sql_type in self.SQL_TYPES:
            if isinstance(sample, py_type):
                return sql_type
        return "TEXT"

    @staticmethod
    def _to_cell(value: Any) -> Any:
        if isinstance(value, (dict, list)):
            return json.dumps(value, ensure_ascii=False)
        return value

    async def _write(self, path: Path, table: ResultTable) -> None:
        name = f'"{self._table_name}"'
        columns: List[str] = [f'"{col}"' for col in table.columns]
        definitions = ", ".join(
            f"{quoted} {self._sql_type(table, col)}"
            for quoted, col in zip(columns, table.columns)
        )

        async with aiosqlite.connect(path) as db:
            if self._replace:
                await db.execute(f"DROP TABLE IF EXISTS {name}")
            await db.execute(
                f"CREATE TABLE IF NOT EXISTS {name} ("
                f"id INTEGER PRIMARY KEY AUTOINCREMENT, {definitions}, "
                f"_exported_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP)"
            )
            await db.executemany(
                f"INSERT INTO {name} ({', '.join(columns)}) "
                f"VALUES ({', '.join('?' for _ in columns)})",
                [[self._to_cell(v) for v in row] for row in table.rows()],
            )
            await db.commit()


EXPORTERS = {
    "json": lambda **kwargs: JSONExporter(jsonl=False, **kwargs),
    "jsonl": lambda **kwargs: JSONExporter(jsonl=True, **kwargs),
    "csv": CSVExporter,
    "sqlite": SQLiteExporter,
}


def create_exporter(format: str = "json", **kwargs) -> BaseExporter:
    """
    Create an exporter for a format name.

    Args:
        format: "json", "jsonl", "csv" or "sqlite"
        **kwargs: Passed to the exporter's constructor

    Raises:
        ValueError: For an unknown format
    """
    try:
        factory = EXPORTERS[format]
    except KeyError:
        raise ValueError(f"Unknown format: {format}. Use: {list(EXPORTERS)}") from None
    return factory(**kwargs)
