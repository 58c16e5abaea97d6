"""
Utility functions and helpers for mediakeeper.

- **logger.py**: Centralized logging with colored console output through
  prompt_toolkit, a per-session rotating log file and muted library loggers.

- **discord_utils.py**: Best-effort Discord actions (delete, DM, transient
  notice, thread membership) that report success instead of raising.

- **format_utils.py**: Text helpers for quotes, thread names, persona labels
  and splitting long content into Discord-sized messages.
"""
