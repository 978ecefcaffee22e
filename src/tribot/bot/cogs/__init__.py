"""Cogs registered on the TriBot Discord client."""
