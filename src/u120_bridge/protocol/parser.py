"""Frame parsing for U120 report transmissions.

A frame is the ASCII text the analyzer prints for one test, terminated
on the wire by ETX. Lines are classified by an ordered list of matchers;
the first matcher that accepts a line decides its kind. Lines nobody
accepts are banner or layout noise and are dropped.

Example frame::

    No. 42
    Date: 01/01/24
    Operator: Jane
    *LEU 2+
     GLU 120mg/dL
"""

import logging
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from u120_bridge.core.models import ResultLine, TestRecord
from u120_bridge.protocol.constants import ETX, KNOWN_UNITS, OUT_OF_RANGE_FLAG, STX

logger = logging.getLogger(__name__)

DATE_RE = re.compile(r"Date:\s*(.*)")
OPERATOR_RE = re.compile(r"Operator:\s*(.*)")
SEQUENCE_RE = re.compile(r"No\.\s*(\d+)")
RESULT_RE = re.compile(r"^(\*?)\s*([a-zA-Z]{2,3})\s+(.*)$")
LINE_SPLIT_RE = re.compile(r"[\r\n]+")

_FRAME_STRIP = f" \t\r\n{chr(STX)}{chr(ETX)}"


@dataclass(frozen=True)
class DateLine:
    value: str


@dataclass(frozen=True)
class OperatorLine:
    value: str


@dataclass(frozen=True)
class SequenceLine:
    value: str


@dataclass(frozen=True)
class Unrecognized:
    text: str


LineKind = DateLine | OperatorLine | SequenceLine | ResultLine | Unrecognized


def match_date(line: str, units: Sequence[str]) -> DateLine | None:
    match = DATE_RE.search(line)
    return DateLine(match.group(1).strip()) if match else None


def match_operator(line: str, units: Sequence[str]) -> OperatorLine | None:
    match = OPERATOR_RE.search(line)
    return OperatorLine(match.group(1).strip()) if match else None


def match_sequence(line: str, units: Sequence[str]) -> SequenceLine | None:
    match = SEQUENCE_RE.search(line)
    return SequenceLine(match.group(1)) if match else None


def split_unit(rest: str, units: Sequence[str]) -> tuple[str, str]:
    """Strip a known unit suffix from the tail of a value.

    Args:
        rest: Text after the test code.
        units: Candidate unit suffixes.

    Returns:
        Tuple of (value, unit). Unit is empty when no suffix matched.
    """
    for unit in sorted(units, key=len, reverse=True):
        if unit and rest.endswith(unit):
            return rest[: -len(unit)].strip(), unit
    return rest, ""


def match_result(line: str, units: Sequence[str]) -> ResultLine | None:
    match = RESULT_RE.match(line)
    if match is None:
        return None

    flag, test_code, rest = match.groups()
    value, unit = split_unit(rest.strip(), units)
    return ResultLine(
        test_code=test_code.upper(),
        value=f"{flag}{value}".strip(),
        unit=unit,
        flag=OUT_OF_RANGE_FLAG if flag else None,
    )


# Order matters: metadata lines would otherwise also look like results.
LINE_MATCHERS: tuple[Callable[[str, Sequence[str]], LineKind | None], ...] = (
    match_date,
    match_operator,
    match_sequence,
    match_result,
)


def classify_line(line: str, units: Sequence[str] = KNOWN_UNITS) -> LineKind:
    """Classify a single trimmed report line."""
    for matcher in LINE_MATCHERS:
        kind = matcher(line, units)
        if kind is not None:
            return kind
    return Unrecognized(line)


def decode_frame(frame: bytes | str) -> str:
    """Decode raw frame bytes to text, dropping framing control bytes."""
    if isinstance(frame, bytes):
        frame = frame.decode("ascii", errors="replace")
    return frame.strip(_FRAME_STRIP)


def parse_frame(frame: bytes | str, units: Sequence[str] = KNOWN_UNITS) -> TestRecord:
    """Parse one complete frame into a TestRecord.

    Never raises on malformed input: lines that match no pattern are
    skipped. A frame without result lines yields a record with an empty
    results tuple.

    Args:
        frame: Frame bytes (without the ETX delimiter) or decoded text.
        units: Unit suffixes to strip from result values.

    Returns:
        Parsed TestRecord.
    """
    fields: dict[str, str] = {}
    results: list[ResultLine] = []

    for raw_line in LINE_SPLIT_RE.split(decode_frame(frame)):
        line = raw_line.strip()
        if not line:
            continue

        kind = classify_line(line, units)
        if isinstance(kind, DateLine):
            fields["date"] = kind.value
        elif isinstance(kind, OperatorLine):
            fields["operator"] = kind.value
        elif isinstance(kind, SequenceLine):
            fields["sequence_number"] = kind.value
        elif isinstance(kind, ResultLine):
            results.append(kind)
        else:
            logger.debug("Ignoring unrecognized line: %r", kind.text)

    if results:
        logger.debug("Parsed %d results", len(results))
    else:
        logger.debug("Frame contained no result lines")

    return TestRecord(results=tuple(results), **fields)
