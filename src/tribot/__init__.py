"""
TriBot - a small Discord bot with durable state, dice and exclusive-choice polls.

Core Components:

- **State Store**: Ban list, admin list, hourly-throttled counters and custom
  commands, held in memory behind a single lock and written back to one JSON
  file whenever they change
- **Command Dispatcher**: Prefix commands (``;roll 2d6``) with alias lookup,
  admin gating and silent dropping of banned users
- **Poll Reconciler**: Keeps reactions on bot-created polls mutually exclusive
  per user by removing a voter's other option reactions
- **Dice Evaluator**: ``[count]d<sides>`` notation with signed constants and a
  hard cap on the number of dice
- **Interactive Console**: Operator status, forced saves and graceful
  restart/shutdown

Usage:
    from tribot.main import main
    main()  # Starts the bot with console interface
"""

__version__ = "0.2.0"
