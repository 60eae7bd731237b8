"""
Tonecord - AI-Assisted Tone Moderation for Group Chats

Tonecord watches group conversations and keeps them civil. Cheap checks run
first and the AI provider is only consulted once a conversation has enough
context.

Core Components:

- **Profanity Filter**: Lexical detection of banned roots that survives
  homoglyphs, repeated letters, separators and small misspellings
- **History Store**: Bounded per-conversation message window on a TTL cache
- **Tone Classifier**: Structured AI call deciding whether the recent history
  turned aggressive and which messages are to blame
- **Correction Streaming**: Polite rewrites generated by the AI and rendered
  into the chat message by message as they arrive
- **Moderation Log**: In-memory record of actions with per-channel stats

Usage:
    from tonecord.main import main
    main()  # Starts the Discord bot
"""
