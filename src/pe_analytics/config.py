"""
Configuration management for PE Performance Analytics.

This module centralizes all configuration settings including database
connection, IRR solver parameters, and logging defaults.
"""

import os
from typing import Tuple


# ==============================================================================
# DATABASE CONFIGURATION
# ==============================================================================

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///pe_analytics.db")


# ==============================================================================
# COMPUTATION CONFIGURATION
# ==============================================================================

# IRR Calculation Parameters
IRR_MAX_ITERATIONS = 100
IRR_TOLERANCE = 1e-5
IRR_INITIAL_GUESS = 0.1
IRR_DERIVATIVE_FLOOR = 1e-10

# Newton-Raphson bounds (-99% to +1000%)
IRR_MIN_RATE = -0.99
IRR_MAX_RATE = 10

DAYS_PER_YEAR = 365.25

# Multiples, percentages and IRR are reported to this many decimals
METRIC_DECIMALS = 2

# 0 runs per-asset computations serially
PORTFOLIO_MAX_WORKERS = int(os.getenv("PORTFOLIO_MAX_WORKERS", "0"))


# ==============================================================================
# DOMAIN CONFIGURATION
# ==============================================================================

# Manual asset types that carry PE cash flows
PE_ASSET_TYPES: Tuple[str, ...] = ("private_equity", "angel_investment")

DEFAULT_CURRENCY = os.getenv("DEFAULT_CURRENCY", "USD")


# ==============================================================================
# LOGGING CONFIGURATION
# ==============================================================================

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
