#!/usr/bin/env python3
"""
Root launcher for the bundler comparison benchmark.
Imports the scenario module and calls its run() function.
"""
import sys
import os
import traceback

# Ensure the current directory is in the path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from scenarios.exp_bundler_comparison import run

if __name__ == "__main__":
    try:
        run()
    except Exception:
        traceback.print_exc()
        sys.exit(1)
