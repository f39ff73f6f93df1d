#!/usr/bin/env python3
"""HLVM — Hello Kernel example.

This script walks through the persistent namespace in two boots:

  1. Boot a kernel on a throwaway database
  2. Store data and a function on the namespace root
  3. Register a shortcut pointing at the function
  4. Restart the kernel and call the shortcut again
  5. Redefine the target and watch the shortcut follow it

Usage:
  python examples/hello_kernel.py
  python examples/hello_kernel.py --db /tmp/demo.sqlite
"""

from __future__ import annotations

import argparse
import tempfile
from pathlib import Path


def square(x):
    return x * x


def cube(x):
    return x * x * x


def main() -> None:
    parser = argparse.ArgumentParser(description="HLVM Hello Kernel")
    parser.add_argument(
        "--db",
        default=str(Path(tempfile.mkdtemp()) / "HLVM.sqlite"),
        help="Database file (default: a fresh temporary file)",
    )
    args = parser.parse_args()

    from hlvm.config import Settings
    from hlvm.kernel import Kernel

    settings = Settings(storage={"db_path": args.db}, kernel={"announce_shortcuts": True})

    # -----------------------------------------------------------------------
    # Step 1-3: First boot
    # -----------------------------------------------------------------------
    print(f"Booting kernel on {args.db}...")
    with Kernel(settings) as kernel:
        hlvm = kernel.namespace
        hlvm.counter = 42
        hlvm.square = square
        hlvm.modules.shortcut("sq", "square")
        print(f"  sq(4)    = {kernel.evaluate('sq(4)')}")
        print(f"  modules  = {hlvm.modules}")
    print()

    # -----------------------------------------------------------------------
    # Step 4-5: Second boot, same file
    # -----------------------------------------------------------------------
    print("Restarting...")
    kernel = Kernel(settings)
    kernel.init()
    try:
        hlvm = kernel.namespace
        print(f"  counter  = {hlvm.counter}")
        print(f"  sq(4)    = {kernel.evaluate('sq(4)')}")

        hlvm.square = cube
        print(f"  sq(4)    = {kernel.evaluate('sq(4)')}  (after redefining square)")
        kernel.status()
    finally:
        kernel.teardown()


if __name__ == "__main__":
    main()
