"""Decode and parse a set of works, recording per-document outcomes."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path

from aozorize.errors import DocumentError
from aozorize.parser.base import Document
from aozorize.parser.ruby_txt import RubyTxtParser
from aozorize.registry import WorkEntry

logger = logging.getLogger(__name__)

STATUS_OK = "ok"
STATUS_WARNING = "warning"
STATUS_FAILED = "failed"

# Receives each parsed document; returns where it was written, if anywhere.
DocumentSink = Callable[[WorkEntry, Document], Path | None]
ProgressCallback = Callable[["DocumentResult"], None]


@dataclass(slots=True)
class DocumentResult:
    work: WorkEntry
    status: str
    document: Document | None = None
    error: str | None = None
    error_kind: str | None = None
    output_path: Path | None = None


@dataclass(slots=True)
class BatchSummary:
    results: list[DocumentResult] = field(default_factory=list)

    def _count(self, status: str) -> int:
        return sum(1 for result in self.results if result.status == status)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def ok(self) -> int:
        return self._count(STATUS_OK)

    @property
    def warnings(self) -> int:
        return self._count(STATUS_WARNING)

    @property
    def failed(self) -> int:
        return self._count(STATUS_FAILED)

    @property
    def failures(self) -> list[DocumentResult]:
        return [result for result in self.results if result.status == STATUS_FAILED]


class BatchDriver:
    """Run decode + parse over many works without letting one failure stop the rest.

    With ``workers > 1`` documents are dispatched to a thread pool. Results
    are collected in completion order; each document's segment order is
    untouched.
    """

    def __init__(
        self,
        parser: RubyTxtParser,
        sink: DocumentSink | None = None,
        workers: int = 1,
    ) -> None:
        self.parser = parser
        self.sink = sink
        self.workers = max(1, workers)

    def run(self, works: Iterable[WorkEntry], progress: ProgressCallback | None = None) -> BatchSummary:
        summary = BatchSummary()
        work_list = list(works)

        if self.workers == 1:
            for work in work_list:
                self._collect(summary, self.process(work), progress)
        else:
            with ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="aozorize") as executor:
                futures = [executor.submit(self.process, work) for work in work_list]
                for future in as_completed(futures):
                    self._collect(summary, future.result(), progress)

        logger.info(
            "Batch finished: %d documents, %d ok, %d with warnings, %d failed",
            summary.total,
            summary.ok,
            summary.warnings,
            summary.failed,
        )
        return summary

    def process(self, work: WorkEntry) -> DocumentResult:
        """Decode, parse and hand one work to the sink. Never raises."""
        if work.text_path is None:
            logger.error("Work %s has no text resource", work.book_id)
            return DocumentResult(work=work, status=STATUS_FAILED, error="No text resource", error_kind="io_failure")

        try:
            document = self.parser.parse(
                work.text_path,
                title=work.title,
                authors=work.authors,
                book_id=work.book_id,
            )
            output_path = self.sink(work, document) if self.sink is not None else None
        except DocumentError as exc:
            logger.error("Failed to process book %s 「%s」: %s", work.book_id, work.title, exc)
            return DocumentResult(work=work, status=STATUS_FAILED, error=str(exc), error_kind=exc.kind)
        except Exception as exc:
            logger.exception("Unexpected error while processing book %s", work.book_id)
            return DocumentResult(work=work, status=STATUS_FAILED, error=str(exc), error_kind="internal_error")

        if document.warnings:
            logger.warning(
                "Book %s 「%s」 parsed with %d warning(s): %s",
                work.book_id,
                work.title,
                len(document.warnings),
                document.warnings[0].message,
            )
            status = STATUS_WARNING
        else:
            logger.debug("Book %s parsed", work.book_id)
            status = STATUS_OK
        return DocumentResult(work=work, status=status, document=document, output_path=output_path)

    @staticmethod
    def _collect(summary: BatchSummary, result: DocumentResult, progress: ProgressCallback | None) -> None:
        summary.results.append(result)
        if progress is not None:
            progress(result)
