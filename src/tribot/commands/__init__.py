"""
Chat commands.

- **dispatcher.py**: Parses prefixed messages, applies ban and admin checks,
  runs the matching handler and writes back dirty state.
- **registry.py**: The table of built-in commands, aliases and help text.
- **handlers.py**: One coroutine per built-in command.
"""
