#!/usr/bin/env python3
# run.py - Development launcher
"""
Run Ambient Glow against a local config with the mock backend
"""
import os
import sys
from ambient_glow.app import main


if __name__ == "__main__":
    # Development default: no hardware unless asked for
    os.environ.setdefault("USE_HARDWARE", "0")
    cfgfile = os.getenv("CFGFILE", "ambient-glow.json")

    print(f"Starting Ambient Glow")
    print(f"  Hardware mode: {os.environ['USE_HARDWARE']}")
    print(f"  Config: {cfgfile}")
    print()

    sys.exit(main(["--cfgfile", cfgfile] + sys.argv[1:]))
