"""
mediakeeper - media-only channel enforcement for Discord

Keeps designated channels for media posts only. Text messages posted there are
moved into a discussion thread under the nearest media post, and the author is
pointed at it.

Core Components:

- **Candidacy filter**: decides which messages are exempt (attachments,
  stickers, links, forwards, system messages, unmonitored channels)
- **Pending registry**: holds plain messages for a short grace window so a
  PluralKit repost can replace them first
- **Proxy resolver**: looks up the real sender and persona of a PluralKit repost
- **Thread resolver / migration executor**: find or create the discussion
  thread, relocate the content, notify the author and remove the original
- **Sweep scheduler**: migrates pending messages once their grace window expires

Usage:
    from mediakeeper.main import main
    main()
"""
