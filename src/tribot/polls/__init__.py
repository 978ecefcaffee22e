"""
Reaction polls.

- **poll_reconciler.py**: Enforces single selection on bot-authored poll
  messages by removing a user's other option reactions.
- **discord_transport.py**: py-cord adapter that fetches messages/reactors and
  deletes reactions, each request bounded by a timeout.
"""
