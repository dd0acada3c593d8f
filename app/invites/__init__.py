"""
Invites app: single- and multi-use registration invite codes.
"""
