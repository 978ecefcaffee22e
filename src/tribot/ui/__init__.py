"""
User-facing rendering for TriBot.

- **embeds.py**: Converts :class:`EmbedSpec` replies into py-cord embeds.
- **console.py**: Operator console (status, forced save, restart, shutdown)
  and the lifecycle control shared with chat commands.
"""
