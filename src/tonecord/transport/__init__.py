"""
Chat platform transports.

- **chat_transport.py**: Protocol of the outbound messaging operations.
- **discord_transport.py**: py-cord implementation.
"""
