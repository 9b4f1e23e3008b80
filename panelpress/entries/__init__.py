"""Entries: storage, codecs, editor state, autosave, and list synchronization."""
