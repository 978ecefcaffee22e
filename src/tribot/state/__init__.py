"""
Durable bot state.

- **state_store.py**: The state snapshot (ban list, admins, counters with an
  hourly cooldown, custom commands), its JSON persistence, and the
  lock-guarded :class:`StateStore` every command handler goes through.
"""
