#!/usr/bin/env python3
"""
Root launcher for the Biconomy SDK latency benchmark.
"""
import sys
import os
import traceback

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from scenarios.exp_biconomy_sdk import run

if __name__ == "__main__":
    print(">>> Starting Biconomy SDK Benchmark...")
    try:
        run()
    except Exception:
        traceback.print_exc()
        sys.exit(1)
