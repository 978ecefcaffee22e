"""
Discord-facing layer of TriBot.

- **presence.py**: Current status/activity and how to push it to Discord.
- **cogs/**: Event listeners wiring Discord events to the dispatcher and the
  poll reconciler.
"""
