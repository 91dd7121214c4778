#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
config.py

Configuration constants and defaults for the contractor grading / urgent-fee engine.

Key idea: lookup tables live in YAML, knobs live here
-----------------------------------------------------
Grade thresholds, weights, discounts and urgency base rates are business decisions.
They are declared in tables/definitions/*.yaml and injected into the engines.

This module only keeps the *runtime knobs* around them:
- where the table files are,
- what counts as a "strength" or an "improvement area",
- how the scheduled urgent-fee escalation steps,
- logging / trace defaults for the CLI.

Every value can be overridden with a GRADEFEE_* environment variable.
"""

import os
from pathlib import Path

# ---------------------------------------------------------------------
# Lookup tables
# ---------------------------------------------------------------------
# TABLES_DIR:
# - Folder holding grading.yaml and fees.yaml.
# - Defaults to the definitions shipped inside the package.
# - Override with GRADEFEE_TABLES_DIR to try alternate tables without code changes.
TABLES_DIR = Path(
    os.getenv("GRADEFEE_TABLES_DIR", str(Path(__file__).resolve().parent / "tables" / "definitions"))
)

# ---------------------------------------------------------------------
# Money
# ---------------------------------------------------------------------
# DEFAULT_CURRENCY:
# - Currency label attached to fee breakdowns and rendered reports.
# - The marketplace bills in won, so KRW unless told otherwise.
DEFAULT_CURRENCY = os.getenv("GRADEFEE_DEFAULT_CURRENCY", "KRW")

# ---------------------------------------------------------------------
# Feedback thresholds (on normalized 0-100 sub-scores)
# ---------------------------------------------------------------------
# STRENGTH_THRESHOLD:
# - A metric whose sub-score is >= this value is listed as a strength.
STRENGTH_THRESHOLD = float(os.getenv("GRADEFEE_STRENGTH_THRESHOLD", "80"))

# WEAKNESS_THRESHOLD:
# - A metric whose sub-score is < this value is listed as an improvement area.
WEAKNESS_THRESHOLD = float(os.getenv("GRADEFEE_WEAKNESS_THRESHOLD", "60"))

# ---------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------
# TOP_PERFORMERS_LIMIT:
# - How many contractors grade_statistics() keeps in top performers / improvement candidates.
TOP_PERFORMERS_LIMIT = int(os.getenv("GRADEFEE_TOP_PERFORMERS_LIMIT", "10"))

# ---------------------------------------------------------------------
# Urgent-fee escalation
# ---------------------------------------------------------------------
# URGENT_FEE_STEP_SECONDS:
# - An open job's urgent fee goes up once per elapsed step.
# - 600 = every 10 minutes (the scheduler's cadence).
URGENT_FEE_STEP_SECONDS = int(os.getenv("GRADEFEE_URGENT_FEE_STEP_SECONDS", "600"))

# URGENT_FEE_STEP_PERCENT:
# - Percentage points added per step, capped by the job's max urgent fee.
URGENT_FEE_STEP_PERCENT = float(os.getenv("GRADEFEE_URGENT_FEE_STEP_PERCENT", "5"))

# ---------------------------------------------------------------------
# Logging / tracing (CLI)
# ---------------------------------------------------------------------
DEFAULT_LOG_LEVEL = os.getenv("GRADEFEE_LOG_LEVEL", "WARNING")

# TRACE_ENABLED:
# - When a trace path is given, each calculation is appended as one JSONL record.
# - Set GRADEFEE_TRACE=0 to silence it even when --trace-path is passed.
TRACE_ENABLED = os.getenv("GRADEFEE_TRACE", "1").strip().lower() not in {"0", "false", "no"}
