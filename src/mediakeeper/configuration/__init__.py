"""
Configuration management for mediakeeper.

- **app_configuration.py**: YAML configuration loader exposing the media-only
  and proxy tunables (grace window, sweep interval, history depth, notice
  lifetime, PluralKit endpoint and settling delay) with safe defaults.

- **channel_store.py**: JSON-backed list of media-only channel ids, loaded when
  the bot is ready and updated by the admin commands.
"""
