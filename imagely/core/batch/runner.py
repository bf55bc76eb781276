"""
Batch Runner
============

Renders one HTML template once per JSON data record. The source HTML is read
once and every record gets a full render pass against that cached copy with
its own window.data payload and destination. Records run strictly in
sequence since each pass owns the engine and writes its own output.
"""

from typing import Any, Iterable, List, Optional, Set, Union
from pathlib import Path
import json

import aiofiles

from imagely.config.logging import get_logger
from imagely.config.settings import get_settings
from imagely.core.assets.inliner import serialize_payload
from imagely.core.exceptions import ConfigurationError, PayloadParseError
from imagely.core.rendering.renderer import Renderer, read_html
from imagely.models.schemas import BatchLog, BatchLogEntry, BatchRecord, RenderRequest

logger = get_logger(__name__)


def parse_records(data: Any, filename_key: str = "filename") -> List[BatchRecord]:
    """Build batch records from parsed JSON; a single object is a one-record batch."""
    items = data if isinstance(data, list) else [data]
    records = []
    for index, item in enumerate(items):
        filename = None
        if isinstance(item, dict):
            value = item.get(filename_key)
            if value is not None and str(value).strip():
                filename = str(value).strip()
        records.append(BatchRecord(index=index, data=item, filename=filename))
    return records


async def load_records(
    path: Union[str, Path], filename_key: Optional[str] = None
) -> List[BatchRecord]:
    """
    Load batch records from a JSON file.

    Raises:
        PayloadParseError: If the file cannot be read or is not valid JSON
    """
    key = filename_key or get_settings().batch_filename_key
    try:
        async with aiofiles.open(path, "r", encoding="utf-8") as f:
            text = await f.read()
        data = json.loads(text)
    except (OSError, UnicodeDecodeError) as e:
        raise PayloadParseError(f'Error reading JSON data "{path}": {e}') from e
    except json.JSONDecodeError as e:
        raise PayloadParseError(f'Invalid JSON data in "{path}": {e}') from e
    return parse_records(data, key)


def derive_destination(template: Path, record: BatchRecord, used: Set[Path]) -> Path:
    """
    Destination for a record: the record filename or the template stem plus index.

    Names already used in this batch get the record index appended.
    """
    suffix = template.suffix
    if record.filename:
        name = Path(record.filename).name
        if not name.lower().endswith(suffix.lower()):
            name = f"{name}{suffix}"
        candidate = template.parent / name
    else:
        candidate = template.parent / f"{template.stem}-{record.index}{suffix}"

    if candidate in used:
        candidate = candidate.with_name(f"{candidate.stem}-{record.index}{suffix}")
    return candidate


async def write_log(log: BatchLog, path: Union[str, Path]) -> None:
    """Write the batch log as JSON with 4-space indentation."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    content = json.dumps(log.model_dump(mode="json"), indent=4)
    async with aiofiles.open(path, "w", encoding="utf-8") as f:
        await f.write(content)


class BatchRunner:
    """Runs render passes over a sequence of records."""

    def __init__(self, renderer: Optional[Renderer] = None):
        self.settings = get_settings()
        self.logger: Any = logger.bind(component="batch_runner")  # structlog.BoundLoggerBase
        self.renderer = renderer or Renderer()

    async def run(
        self,
        request: RenderRequest,
        records: Iterable[BatchRecord],
        log_filepath: Optional[Union[str, Path]] = None,
    ) -> BatchLog:
        """
        Render every record and write the batch log.

        A record whose pass fails is reported and skipped; it does not stop
        the batch and is not written to the log. Rendered records are
        classified as success or failure by their probed dimensions.

        Args:
            request: Template request; its destination names the output directory and extension
            records: Data records in processing order
            log_filepath: Where to write the log; defaults next to the destination

        Returns:
            The accumulated batch log
        """
        if request.is_url:
            raise ConfigurationError("Batch mode requires a local HTML file source")

        html_text = await read_html(request.source)
        log = BatchLog()
        used: Set[Path] = set()
        log_path = (
            Path(log_filepath)
            if log_filepath is not None
            else request.destination.parent / self.settings.batch_log_filename
        )

        for record in records:
            log = await self._run_record(request, record, html_text, log, used)

        await write_log(log, log_path)
        self.logger.info(
            "Batch completed",
            success=len(log.success),
            failure=len(log.failure),
            log_filepath=str(log_path),
        )
        return log

    async def _run_record(
        self,
        request: RenderRequest,
        record: BatchRecord,
        html_text: str,
        log: BatchLog,
        used: Set[Path],
    ) -> BatchLog:
        destination = derive_destination(request.destination, record, used)
        used.add(destination)

        record_request = request.model_copy(
            update={"destination": destination, "json_data_path": None}
        )
        outcome = await self.renderer.render(
            record_request,
            html_text=html_text,
            payload_json=serialize_payload(record.data),
        )

        if outcome.error is not None or outcome.dimensions is None:
            self.logger.warning("Batch record failed", index=record.index, error=outcome.error)
            return log

        log.record(
            BatchLogEntry(
                width=outcome.dimensions.width,
                height=outcome.dimensions.height,
                index=record.index,
                filename=record.filename,
                destination=str(destination),
            )
        )
        return log
