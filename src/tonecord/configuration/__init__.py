"""
Configuration management for Tonecord.

- **app_configuration.py**: File-locked YAML configuration loader with typed
  accessors for history, spam, streaming, profanity and moderation log
  settings. Falls back to defaults on missing or malformed config files.

- **ai_settings.py**: Typed view over the AI provider section.
"""
