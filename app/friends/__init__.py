"""
Friends app: friend request lifecycle and symmetric friendships.

A friendship is stored once per unordered pair with user1 < user2. The
pair's private text and voice channels are provisioned on first use and
survive removal of the friendship.
"""
