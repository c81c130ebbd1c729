# ABOUTME: Novella - authoritative data store for a serialized-fiction platform.
# ABOUTME: Users publish novels made of ordered chapters; readers comment and bookmark.

__version__ = "0.1.0"
