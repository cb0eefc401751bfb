#!/usr/bin/env python3
"""Decode and print test records from a captured serial binary file."""

import argparse
import json
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from u120_bridge.protocol.constants import ETX, KNOWN_UNITS
from u120_bridge.protocol.parser import LINE_SPLIT_RE, classify_line, decode_frame, parse_frame


def extract_frames(data: bytes) -> tuple[list[bytes], bytes]:
    """Split raw captured data on ETX.

    Returns:
        Tuple of (complete non-blank frames, trailing bytes without ETX).
    """
    chunks = data.split(bytes([ETX]))
    return [chunk for chunk in chunks[:-1] if chunk.strip()], chunks[-1]


def print_line_kinds(frame: bytes, units: tuple[str, ...]) -> None:
    """Show how each line of a frame is classified."""
    for raw_line in LINE_SPLIT_RE.split(decode_frame(frame)):
        line = raw_line.strip()
        if line:
            kind = classify_line(line, units)
            print(f"  {type(kind).__name__:<13} {line}")


def main():
    parser = argparse.ArgumentParser(description="Decode U120 frames from a raw serial capture")
    parser.add_argument("capture", type=Path, help="Capture file (raw bytes)")
    parser.add_argument("--lines", "-l", action="store_true", help="Show line classification")
    parser.add_argument("--unit", "-u", action="append", default=[], help="Extra unit suffix to strip")
    args = parser.parse_args()

    if not args.capture.exists():
        print(f"File not found: {args.capture}")
        sys.exit(1)

    data = args.capture.read_bytes()
    frames, trailing = extract_frames(data)
    units = KNOWN_UNITS + tuple(args.unit)

    print(f"Capture: {len(data):,} bytes, {len(frames)} frames")

    for i, frame in enumerate(frames, 1):
        record = parse_frame(frame, units)
        print(f"\n--- Frame {i} ({len(frame)} bytes, {len(record.results)} results) ---")
        if args.lines:
            print_line_kinds(frame, units)
        print(json.dumps(record.to_wire(), indent=2))

    if trailing.strip():
        print(f"\n{len(trailing)} trailing bytes without ETX (incomplete frame)")


if __name__ == "__main__":
    main()
