"""
Configuration management for TriBot.

- **app_configuration.py**: YAML configuration loader for global settings such as
  the command prefix, the state file location, the poll embed colour and the
  reaction transport timeout. Falls back gracefully on missing or malformed
  config files.

Secrets (the Discord token) and the optional state file override come from the
environment and are read in ``tribot.main``.
"""
