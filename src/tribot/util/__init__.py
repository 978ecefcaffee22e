"""
Utility functions and helpers for TriBot.

This package provides reusable utilities:

- **logger.py**: Centralized logging configuration with colored console output,
  rotating file handlers, and per-session log aggregation. Uses prompt_toolkit
  so log output does not interfere with the operator console.

- **format_utils.py**: Duration and timestamp helpers used when rendering
  command replies (cooldown remaining time, ping latency).
"""
