from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import BinaryIO

from ..models.cell import Cell
from ..models.config_models import ProcessingConfig
from ..models.table import Row, Table
from ..services.progress import ProgressTracker

"""Streaming XML reader for per-sample instrument exports.

The export is a sequence of sample blocks, each ending with a configurable
closing tag (``sample-result`` by default). Inside a block, selected leaf
tags hold one value each. The file is scanned once, front to back, as a
stream of START / TEXT / END events; no document tree is kept.

SampleScanner is the state machine that turns those events into rows:

    IDLE --START(tag of interest)--> TAG_OPEN
    TAG_OPEN --TEXT--> TAG_OPEN            (one Cell per text event)
    TAG_OPEN --END(same tag)--> IDLE
    any --END(closing tag)--> IDLE         (pending cells become one Row)
    any --finish()--> FINISHED             (terminal)

Only one tag of interest is tracked at a time: a START for another tag of
interest while one is open replaces it.

Table headers come from the first completed sample only. Later samples are
assumed to use the same tags in the same order; when they don't, their
extra cells are still stored but can only be reached by position.
"""

__all__ = [
    "MarkupParseError",
    "EventKind",
    "MarkupEvent",
    "ScanState",
    "SampleScanner",
    "iter_markup_events",
    "scan_events",
    "read_xml_stream",
    "read_xml_file",
]

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


class MarkupParseError(Exception):
    """Malformed markup. ``position`` is (line, column) when known."""

    def __init__(self, message: str, position: tuple[int, int] | None = None) -> None:
        super().__init__(message)
        self.position = position

    def __str__(self) -> str:
        base = super().__str__()
        if self.position is None:
            return base
        line, col = self.position
        return f"{base} (line {line}, column {col})"


class EventKind(Enum):
    START = "start"
    TEXT = "text"
    END = "end"


@dataclass(frozen=True)
class MarkupEvent:
    kind: EventKind
    data: str  # START/END: tag name, TEXT: decoded text

    @staticmethod
    def start(name: str) -> MarkupEvent:
        return MarkupEvent(EventKind.START, name)

    @staticmethod
    def text(content: str) -> MarkupEvent:
        return MarkupEvent(EventKind.TEXT, content)

    @staticmethod
    def end(name: str) -> MarkupEvent:
        return MarkupEvent(EventKind.END, name)


class ScanState(Enum):
    IDLE = "idle"
    TAG_OPEN = "tag_open"
    FINISHED = "finished"


class SampleScanner:
    """Event-driven row builder for the sample-block format."""

    def __init__(
        self,
        tags_of_interest: Sequence[str],
        closing_tag: str,
        prefixes: Sequence[str] = (),
    ) -> None:
        self.tags_of_interest = frozenset(tags_of_interest)
        self.prefixes = tuple(prefixes)
        self.closing_tag = closing_tag
        self.state = ScanState.IDLE
        self.open_tag: str | None = None
        self._pending: list[Cell] = []
        self._rows: list[Row] = []
        self._headers: tuple[str, ...] | None = None

    @property
    def pending(self) -> tuple[Cell, ...]:
        """Cells accumulated for the sample currently being assembled."""
        return tuple(self._pending)

    @property
    def rows(self) -> tuple[Row, ...]:
        return tuple(self._rows)

    def is_tag_of_interest(self, name: str) -> bool:
        if name in self.tags_of_interest:
            return True
        return any(name.startswith(p) for p in self.prefixes)

    def feed(self, event: MarkupEvent) -> None:
        if self.state is ScanState.FINISHED:
            raise RuntimeError("scanner already finished")

        if event.kind is EventKind.START:
            if self.is_tag_of_interest(event.data):
                if self.state is ScanState.TAG_OPEN:
                    logger.debug(f"xml: <{event.data}> opened while <{self.open_tag}> still open")
                self.open_tag = event.data
                self.state = ScanState.TAG_OPEN
        elif event.kind is EventKind.TEXT:
            if self.state is ScanState.TAG_OPEN and self.open_tag is not None:
                self._pending.append(Cell.parse(self.open_tag, event.data))
        elif event.kind is EventKind.END:
            if event.data == self.closing_tag:
                self._finish_sample()
            elif self.state is ScanState.TAG_OPEN and event.data == self.open_tag:
                self.open_tag = None
                self.state = ScanState.IDLE

    def _finish_sample(self) -> None:
        self.open_tag = None
        self.state = ScanState.IDLE
        if not self._pending:
            # 空ブロックは行にしない (ヘッダが空になるのを防ぐ)
            logger.debug(f"xml: empty <{self.closing_tag}> block skipped")
            return
        row = Row(index=len(self._rows), cells=tuple(self._pending))
        headers = tuple(c.header for c in row.cells)
        if self._headers is None:
            self._headers = headers
        elif headers != self._headers:
            logger.warning(
                f"xml: sample row {row.index} tags {list(headers)} differ from the first "
                f"sample's {list(self._headers)}; cells are kept by position"
            )
        self._rows.append(row)
        self._pending = []

    def finish(self) -> Table:
        """End of input: return the Table. Unterminated trailing cells are dropped."""
        if self._pending:
            logger.warning(
                f"xml: {len(self._pending)} cell(s) after the last <{self.closing_tag}> ignored"
            )
            self._pending = []
        self.state = ScanState.FINISHED
        self.open_tag = None
        return Table(headers=self._headers or (), rows=tuple(self._rows))


def _local_name(tag: str) -> str:
    # {namespace}name -> name
    if tag.startswith("{"):
        return tag.rsplit("}", 1)[1]
    return tag


def _drain(parser: ET.XMLPullParser, open_elements: list[ET.Element]) -> Iterator[MarkupEvent]:
    """Convert pending parser events. Finished elements are detached from their parent."""
    for kind, elem in parser.read_events():
        name = _local_name(elem.tag)
        if kind == "start":
            open_elements.append(elem)
            yield MarkupEvent.start(name)
        else:
            text = elem.text.strip() if elem.text else ""
            if text:
                yield MarkupEvent.text(text)
            yield MarkupEvent.end(name)
            open_elements.pop()
            elem.clear()
            # 保持するのは開いている要素の経路だけ
            if open_elements:
                open_elements[-1].remove(elem)


def iter_markup_events(
    stream: BinaryIO,
    *,
    chunk_size: int = CHUNK_SIZE,
    progress: ProgressTracker | None = None,
) -> Iterator[MarkupEvent]:
    """Yield START/TEXT/END events from an XML byte stream.

    Element text is reported just before the element's END event, stripped
    of surrounding whitespace; whitespace-only text produces no event.

    Raises:
        MarkupParseError: on malformed markup (with line/column).
    """
    parser = ET.XMLPullParser(events=("start", "end"))
    open_elements: list[ET.Element] = []
    try:
        while True:
            chunk = stream.read(chunk_size)
            if not chunk:
                break
            parser.feed(chunk)
            if progress is not None:
                progress.update(len(chunk))
            yield from _drain(parser, open_elements)
        parser.close()
        yield from _drain(parser, open_elements)
    except ET.ParseError as e:
        raise MarkupParseError(f"malformed xml: {e}", getattr(e, "position", None)) from e


def scan_events(events: Iterable[MarkupEvent], config: ProcessingConfig) -> Table:
    """Run a SampleScanner configured from ``config`` over ``events``."""
    scanner = SampleScanner(
        tags_of_interest=config.xml_tags_of_interest,
        closing_tag=config.xml_sample_closing_tag,
        prefixes=config.xml_include_prefixes,
    )
    for event in events:
        scanner.feed(event)
    return scanner.finish()


def read_xml_stream(
    stream: BinaryIO,
    config: ProcessingConfig,
    *,
    progress: ProgressTracker | None = None,
) -> Table:
    return scan_events(iter_markup_events(stream, progress=progress), config)


def read_xml_file(path: Path, config: ProcessingConfig, *, show_progress: bool = True) -> Table:
    """Read and build a Table from an XML export (single forward pass)."""
    try:
        total = path.stat().st_size
        with path.open("rb") as f, ProgressTracker(
            total, description=f"Reading {path.name}", enabled=show_progress
        ) as progress:
            table = read_xml_stream(f, config, progress=progress)
    except MarkupParseError as e:
        raise MarkupParseError(f"{path.name}: {e.args[0]}", e.position) from e
    except OSError as e:
        raise MarkupParseError(f"failed to read xml {path}: {e}") from e
    logger.debug(f"xml: {path.name} headers={len(table.headers)} rows={len(table)}")
    return table
