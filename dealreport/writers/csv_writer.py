"""CSV file writer."""

import csv
import logging
from pathlib import Path
from typing import IO, Any, List, Optional

from ..exceptions import ReportOutputError
from .base import BaseWriter

logger = logging.getLogger(__name__)


class CsvWriter(BaseWriter):
    """
    Writer for delimited text files.

    The file is created when the header is written, so a run that fails
    before producing a header leaves nothing on disk.
    """

    def __init__(
        self,
        output_path: str,
        delimiter: str = ",",
        encoding: str = "utf-8",
        quoting: int = csv.QUOTE_MINIMAL,
    ):
        """
        Initialize the CSV writer.

        Args:
            output_path: Path of the file to create
            delimiter: Field delimiter character
            encoding: File encoding ("utf-8-sig" adds a BOM for spreadsheet tools)
            quoting: csv module quoting mode
        """
        super().__init__(str(output_path))
        self.output_path = Path(output_path)
        self.delimiter = delimiter
        self.encoding = encoding
        self.quoting = quoting
        self._file: Optional[IO[str]] = None
        self._writer: Optional[Any] = None

    def _open(self) -> None:
        try:
            self.output_path.parent.mkdir(parents=True, exist_ok=True)
            self._file = open(self.output_path, "w", encoding=self.encoding, newline="")
        except OSError as e:
            raise ReportOutputError(f"Cannot write report to {self.output_path}: {e}") from e
        self._writer = csv.writer(
            self._file,
            delimiter=self.delimiter,
            quoting=self.quoting,
            lineterminator="\n",
        )
        logger.info(f"Writing report to {self.output_path}")

    def _write_header(self, header: List[str]) -> None:
        self._open()
        self._writer.writerow(header)

    def _write_row(self, values: List[str]) -> None:
        self._writer.writerow(values)

    def _close(self) -> None:
        if self._file is None:
            return
        self._file.flush()
        self._file.close()
        self._file = None
        self._writer = None
