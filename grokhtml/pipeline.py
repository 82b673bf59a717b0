from __future__ import annotations

import csv
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from .compiler import compile_expression
from .config import AppConfig, ExtractionJob
from .document import Document
from .errors import GrokError
from .runtime import search_document
from .sources import Fetcher

console = Console()
logger = logging.getLogger(__name__)

CSV_FIELDS = ["name", "uri", "output", "error", "extracted_at"]


@dataclass
class JobResult:
    """Outcome of one extraction job; ``error`` is set instead of ``output`` on failure."""

    name: str
    uri: str
    output: Optional[str]
    error: Optional[str]
    extracted_at: str

    @property
    def ok(self) -> bool:
        return self.error is None


class ExtractionPipeline:
    def __init__(self, config: AppConfig, fetcher: Optional[Fetcher] = None):
        self.config = config
        self.fetcher = fetcher

    def run(self) -> List[JobResult]:
        results = [self._process_job(job) for job in self.config.jobs]
        return results

    def _process_job(self, job: ExtractionJob) -> JobResult:
        console.log(f"Extracting {escape(job.name)} ({escape(job.uri)})")
        settings = self.config.settings
        output = None
        error = None
        try:
            machine = compile_expression(job.expression, ignore_case=settings.ignore_case)
            with Document.from_uri(job.uri, encoding=job.encoding, settings=settings, fetcher=self.fetcher) as document:
                output = search_document(document, job.template, machine)
        except GrokError as exc:
            logger.warning("Job %s failed: %s", job.name, exc)
            console.log(f"[red]Failed[/red] {escape(job.name)}: {escape(str(exc))}")
            error = str(exc)

        return JobResult(
            name=job.name,
            uri=job.uri,
            output=output,
            error=error,
            extracted_at=datetime.now(timezone.utc).isoformat(),
        )

    def render(self, results: Iterable[JobResult]) -> None:
        table = Table(title="Extraction Results", show_header=True, header_style="bold magenta")
        table.add_column("Job")
        table.add_column("Result")
        for result in results:
            if result.ok:
                table.add_row(Text(result.name), Text(result.output or ""))
            else:
                table.add_row(Text(result.name), Text(result.error or "", style="red"))
        console.print(table)


def export_csv(results: Iterable[JobResult], destination: Path) -> int:
    """Write job results to a CSV file and return the row count."""

    destination.parent.mkdir(parents=True, exist_ok=True)
    count = 0

    with destination.open("w", newline="", encoding="utf-8-sig") as csvfile:
        writer = csv.DictWriter(csvfile, fieldnames=CSV_FIELDS)
        writer.writeheader()
        for result in results:
            writer.writerow({field: getattr(result, field) for field in CSV_FIELDS})
            count += 1

    return count
