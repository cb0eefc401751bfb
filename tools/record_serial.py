#!/usr/bin/env python3
"""Record raw serial data from a U120 analyzer for testing."""

import argparse
import datetime
import sys
import time
from pathlib import Path

import serial

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from u120_bridge.core.models import SerialConfig
from u120_bridge.protocol.constants import ETX
from u120_bridge.serial.connection import serial_kwargs


def main():
    parser = argparse.ArgumentParser(description="Record serial data from a U120 analyzer")
    parser.add_argument("--port", "-p", default="/dev/ttyUSB0", help="Serial port")
    parser.add_argument("--baud", "-b", type=int, default=9600, help="Baud rate")
    parser.add_argument("--data-bits", type=int, default=8, choices=[5, 6, 7, 8], help="Data bits")
    parser.add_argument("--parity", default="none", choices=["none", "odd", "even", "mark", "space"])
    parser.add_argument("--stop-bits", type=float, default=1, choices=[1, 1.5, 2], help="Stop bits")
    parser.add_argument("--flow-control", default="none", choices=["none", "xon/xoff", "rts/cts"])
    parser.add_argument("--output", "-o", default="serial_capture.bin", help="Output file for raw bytes")
    parser.add_argument("--duration", "-d", type=int, default=60, help="Recording duration in seconds (0=infinite)")
    parser.add_argument("--text", action="store_true", help="Also echo received text to console")
    args = parser.parse_args()

    config = SerialConfig(
        port=args.port,
        baud_rate=args.baud,
        data_bits=args.data_bits,
        parity=args.parity,
        stop_bits=int(args.stop_bits) if args.stop_bits.is_integer() else args.stop_bits,
        flow_control=args.flow_control,
    )

    print(f"Opening {config.port} at {config.baud_rate} baud...")

    try:
        ser = serial.Serial(port=config.port, timeout=1.0, **serial_kwargs(config))
    except serial.SerialException as e:
        print(f"Failed to open serial port: {e}")
        sys.exit(1)

    print(f"Recording to {args.output}...")
    if args.duration > 0:
        print(f"Will record for {args.duration} seconds. Press Ctrl+C to stop early.")
    else:
        print("Recording indefinitely. Press Ctrl+C to stop.")

    start_time = time.time()
    total_bytes = 0
    frame_count = 0

    try:
        with open(args.output, "wb") as f:
            while True:
                if args.duration > 0 and (time.time() - start_time) >= args.duration:
                    break

                data = ser.read(1024)
                if data:
                    f.write(data)
                    total_bytes += len(data)
                    frame_count += data.count(ETX)

                    if args.text:
                        timestamp = datetime.datetime.now().strftime("%H:%M:%S.%f")[:-3]
                        text = data.decode("ascii", errors="replace")
                        print(f"[{timestamp}] ({len(data):3d} bytes): {text!r}")
                    else:
                        elapsed = time.time() - start_time
                        print(
                            f"\rBytes: {total_bytes:,}  Frames: {frame_count}  Time: {elapsed:.1f}s",
                            end="",
                            flush=True,
                        )

    except KeyboardInterrupt:
        print("\n\nRecording stopped by user.")

    finally:
        ser.close()

    elapsed = time.time() - start_time
    print(f"\nRecorded {total_bytes:,} bytes in {elapsed:.1f} seconds")
    print(f"{frame_count} frames detected (ETX markers)")
    print(f"Output saved to: {args.output}")


if __name__ == "__main__":
    main()
