"""Chats feature package: message log, session views, archive state, recency feed.

Every message is one user/AI exchange. Sessions are never stored; they are
grouped from the message log at query time.
"""
