"""
Discord bot cogs for Tonecord.

- **message_listener.py**: Converts new Discord messages into chat events and
  hands them to the moderation service

- **moderation_cmds.py**: Slash commands showing moderation statistics and the
  most recent actions for a channel
"""
