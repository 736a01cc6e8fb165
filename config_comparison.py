"""
Configuration module for the Bundler Comparison Experiment.
Extends global settings with experiment-specific targets & files.
"""
from config import *

# --- Bundler Comparison Specifics ---
# Execution order of the targets; bundlers without an endpoint are skipped.
COMPARISON_TARGETS = ["biconomy", "alchemy", "pimlico"]

COMPARISON_OUTPUT_FILE: str = "latency_results.csv"
COMPARISON_AVG_OUTPUT_FILE: str = "average_latency_results.csv"
