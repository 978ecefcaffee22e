"""
Shared data types for TriBot.

- **discord_datatypes.py**: Snowflake wrappers (UserID, ChannelID, MessageID).
- **command_datatypes.py**: Command registry entries, invocation context and replies.
- **poll_datatypes.py**: Reaction events and message snapshots used by the poll reconciler.
"""
