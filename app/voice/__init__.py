"""
Voice app: who is in which voice channel.

A user occupies at most one voice channel at a time. Joins are serialized
per channel with a row lock so occupancy never exceeds max_users.
"""
