"""
Configuration module for the Biconomy SDK Experiment.
Single bundler, submission timed end-to-end (prepare + sign + send).
"""
from config import *

# --- SDK Benchmark Specifics ---
SDK_BUNDLER: str = "biconomy"
SDK_TARGET_NAME: str = "biconomySDK"

SDK_OUTPUT_FILE: str = "biconomy_sdk_latency_results.csv"
SDK_AVG_OUTPUT_FILE: str = "biconomy_sdk_average_latency_results.csv"
