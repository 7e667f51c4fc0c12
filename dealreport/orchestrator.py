"""Report orchestrator - coordinates the complete export process."""

import logging
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

from sqlalchemy.engine import Connection

from .exceptions import (
    ReportConfigurationError,
    ReportStateError,
    ResolverPreloadError,
)
from .extractors.base import BaseExtractor
from .extractors.deals_extractor import DealsExtractor
from .models.config import ReportConfig
from .models.record import Cell, ReportRow, SourceRecord
from .models.report import ReportRun, ReportState, ReportStatus
from .resolvers.base import BaseResolver, ResolverOutcome
from .resolvers.registry import ResolverRegistry
from .writers.base import BaseWriter
from .writers.csv_writer import CsvWriter

logger = logging.getLogger(__name__)

# Log a progress line every N records while streaming
PROGRESS_INTERVAL = 1000


class ReportOrchestrator:
    """
    Orchestrates a single report run.

    Handles:
    - Validation of the direct field mapping and the column set
    - Resolver preloading
    - Header assembly
    - Record streaming, enrichment and row writing
    - Per-resolver and per-record failure isolation

    Phases move through INITIALIZED -> VALIDATED -> PRELOADED ->
    HEADER_WRITTEN -> STREAMING -> CLOSED. Each phase can be invoked on its
    own in that order, or all at once through generate(). An orchestrator
    runs exactly once.
    """

    def __init__(
        self,
        config: ReportConfig,
        connection: Optional[Connection] = None,
        extractor: Optional[BaseExtractor] = None,
        writer: Optional[BaseWriter] = None,
        registry: Optional[ResolverRegistry] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            config: Report configuration
            connection: Shared database connection for the source and resolvers
            extractor: Record source; a DealsExtractor over the connection by default
            writer: Record writer; a CsvWriter on config.output_path by default
            registry: Resolver registry; the shipped resolvers by default

        Raises:
            ResolverRegistrationError: If the resolver set cannot be built
        """
        self.config = config
        self.connection = connection
        self.registry = registry or ResolverRegistry()
        self.resolvers: List[BaseResolver] = self.registry.discover(connection, config.resolvers)

        self.extractor = extractor or DealsExtractor(
            connection,
            config.selected_fields,
            table_name=config.source_table,
            order_by=config.key_field,
        )
        self.writer = writer or CsvWriter(
            config.output_path,
            delimiter=config.delimiter,
            encoding=config.encoding,
        )

        # Runtime state
        self.state = ReportState.INITIALIZED
        self.header: List[str] = []
        self._resolver_columns: List[Tuple[BaseResolver, List[str]]] = []
        self.run = ReportRun(
            name=config.name,
            output_path=self.writer.result.destination,
            resolvers=[resolver.identifier for resolver in self.resolvers],
        )

    def generate(self) -> ReportRun:
        """
        Run the complete report.

        Returns:
            ReportRun with statistics

        Raises:
            ReportError: On a fatal failure; the writer is closed first
            ReportStateError: If the orchestrator has already run; the
                earlier run is left untouched
        """
        self._require_state(ReportState.INITIALIZED, "generate")
        self.run.start()

        try:
            logger.info("=== PHASE: VALIDATE ===")
            self.validate()

            logger.info("=== PHASE: PRELOAD ===")
            self.preload()

            logger.info("=== PHASE: HEADER ===")
            self.write_header()

            logger.info("=== PHASE: STREAM ===")
            self.stream()

            self.close()
            self.run.finish(ReportStatus.COMPLETED)
            logger.info("=== REPORT COMPLETED ===")

        except Exception as e:
            logger.error(f"Report failed during {self.state.value}: {e}")
            self.run.add_error(self.state.value, e)
            self._abort()
            self.run.finish(ReportStatus.FAILED)
            raise

        finally:
            self.run.state = self.state
            self._log_summary()

        return self.run

    def validate(self) -> None:
        """
        Check the configuration against the source selection and resolvers.

        Raises:
            ReportConfigurationError: If any check fails; nothing is written
        """
        self._require_state(ReportState.INITIALIZED, "validate")

        selection = set(self.extractor.fields)
        errors = list(self.extractor.validate_source())

        unselected = [
            f"{source_field} (column {column_name!r})"
            for column_name, source_field in self.config.direct_fields.items()
            if source_field not in selection
        ]
        if unselected:
            errors.append(f"Direct fields reference unselected source fields: {', '.join(unselected)}")

        if self.config.key_field not in selection:
            errors.append(f"Key field {self.config.key_field} is not selected")

        resolver_columns = []
        for resolver in self.resolvers:
            missing = [name for name in resolver.required_fields if name not in selection]
            if missing:
                errors.append(f"Resolver {resolver.identifier} needs unselected fields: {', '.join(missing)}")
            try:
                columns = list(resolver.column_names())
            except Exception as e:
                raise ReportConfigurationError(
                    f"Resolver {resolver.identifier} cannot list its columns: {e}"
                ) from e
            resolver_columns.append((resolver, columns))

        errors.extend(self._check_column_names(resolver_columns))

        if errors:
            for error in errors:
                logger.error(f"Configuration error: {error}")
            raise ReportConfigurationError("; ".join(errors))

        self._resolver_columns = resolver_columns
        self.state = ReportState.VALIDATED
        logger.info(
            f"Validated {len(self.config.direct_fields)} direct columns and "
            f"{len(self.resolvers)} resolvers"
        )

    def _check_column_names(self, resolver_columns: List[Tuple[BaseResolver, List[str]]]) -> List[str]:
        """Every column name must be a non-empty string owned by one producer."""
        errors = []
        owners: Dict[str, str] = {name: "direct fields" for name in self.config.direct_fields}

        for resolver, columns in resolver_columns:
            if not columns:
                errors.append(f"Resolver {resolver.identifier} declares no columns")
            for name in columns:
                if not isinstance(name, str) or not name:
                    errors.append(f"Resolver {resolver.identifier} declares an invalid column name {name!r}")
                    continue
                owner = owners.get(name)
                if owner is not None:
                    errors.append(f"Column {name!r} of {resolver.identifier} is already provided by {owner}")
                    continue
                owners[name] = f"resolver {resolver.identifier}"

        return errors

    def preload(self) -> None:
        """
        Preload every resolver in registry order.

        Raises:
            ResolverPreloadError: If any resolver fails to preload
        """
        self._require_state(ReportState.VALIDATED, "preload")

        for resolver in self.resolvers:
            logger.info(f"Preloading {resolver.identifier}")
            try:
                resolver.preload()
            except Exception as e:
                raise ResolverPreloadError(resolver.identifier, str(e)) from e

        self.state = ReportState.PRELOADED

    def write_header(self) -> List[str]:
        """
        Assemble and write the header row.

        Returns:
            Column names in output order
        """
        self._require_state(ReportState.PRELOADED, "write_header")

        header = list(self.config.direct_fields)
        for _, columns in self._resolver_columns:
            header.extend(columns)

        self.writer.write_header(header)
        self.header = header
        self.run.header = list(header)
        self.state = ReportState.HEADER_WRITTEN
        logger.info(f"Header has {len(header)} columns")
        return header

    def stream(self) -> None:
        """Pull every record, enrich it and write one row for it."""
        self._require_state(ReportState.HEADER_WRITTEN, "stream")
        self.state = ReportState.STREAMING

        while True:
            record = self.extractor.next_record()
            if record is None:
                break

            self.run.records_pulled += 1
            row = self.build_row(record)
            self.writer.write_row(row.render(self.header, self.config.error_marker))
            self.run.rows_written += 1
            if row.is_error_row:
                self.run.error_rows += 1

            if self.run.records_pulled % PROGRESS_INTERVAL == 0:
                logger.info(f"Processed {self.run.records_pulled} records")

    def close(self) -> None:
        """Close the writer once the source is exhausted."""
        self._require_state(ReportState.STREAMING, "close")
        self.writer.close()
        self.extractor.close()
        self.state = ReportState.CLOSED

    def build_row(self, record: SourceRecord) -> ReportRow:
        """
        Build the output row for one record.

        Resolver failures only affect that resolver's cells. Anything else
        that goes wrong turns the whole record into an error row.
        """
        key_field = self.config.key_field
        key = record.key(key_field)
        if key is None:
            logger.error(
                f"Record #{record.position} has no usable {key_field} "
                f"({record.data.get(key_field)!r}), writing error row"
            )
            return self._error_row(record, None)

        try:
            cells = self._direct_cells(record)
            view = MappingProxyType(record.data)
            for resolver, columns in self._resolver_columns:
                outcome = self._resolve_isolated(resolver, columns, view, key)
                if outcome.failed:
                    self.run.record_resolver_failure(resolver.identifier)
                cells.update(outcome.cells)
        except Exception as e:
            logger.error(f"Record {key} could not be processed, writing error row: {e}")
            return self._error_row(record, key)

        return ReportRow(key=key, cells=cells)

    def _direct_cells(self, record: SourceRecord) -> Dict[str, Cell]:
        cells: Dict[str, Cell] = {}
        for column_name, source_field in self.config.direct_fields.items():
            value = record.data.get(source_field)
            cells[column_name] = "" if value is None else str(value)
        return cells

    def _resolve_isolated(
        self, resolver: BaseResolver, columns: List[str], data: Mapping[str, Any], key: int
    ) -> ResolverOutcome:
        """Run one resolver for one record; a fault only fails its own columns."""
        try:
            values = resolver.resolve(data, key)
            return ResolverOutcome.success(resolver.identifier, columns, values)
        except Exception as e:
            logger.warning(f"Resolver {resolver.identifier} failed for record {key}: {e!r}")
            return ResolverOutcome.failure(resolver.identifier, columns, str(e))

    def _error_row(self, record: SourceRecord, key: Optional[int]) -> ReportRow:
        """
        Build an error row: direct fields that the record still carries,
        the error marker everywhere else.
        """
        cells: Dict[str, Cell] = {}
        for column_name, source_field in self.config.direct_fields.items():
            if not record.has_field(source_field):
                continue
            try:
                cells[column_name] = str(record.data[source_field])
            except Exception as e:
                logger.debug(f"Field {source_field} of record #{record.position} is unreadable: {e!r}")
        return ReportRow(key=key, cells=cells, is_error_row=True)

    def _require_state(self, expected: ReportState, phase: str) -> None:
        if self.state != expected:
            raise ReportStateError(
                f"Cannot {phase} in state {self.state.value}; expected {expected.value}"
            )

    def _abort(self) -> None:
        """Close the output after a fatal error. Reached at most once."""
        if self.state == ReportState.CLOSED:
            return

        if not self.writer.closed:
            try:
                self.writer.close()
            except Exception as e:
                logger.error(f"Failed to close writer after abort: {e}")
        try:
            self.extractor.close()
        except Exception as e:
            logger.error(f"Failed to close record source after abort: {e}")

        self.state = ReportState.CLOSED

    def _log_summary(self) -> None:
        run = self.run
        logger.info(
            f"Report {run.name}: {run.status.value}, {run.records_pulled} records pulled, "
            f"{run.rows_written} rows written, {run.error_rows} error rows"
        )
        for identifier, count in sorted(run.resolver_failures.items()):
            logger.warning(f"Resolver {identifier} failed for {count} records")
        if run.status == ReportStatus.COMPLETED and not run.rows_match_records:
            logger.error(
                f"Row count mismatch: {run.records_pulled} records pulled, {run.rows_written} rows written"
            )
