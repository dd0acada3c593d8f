"""
Rooms app: text and voice channel rows and private (DM) channel pairs.

Channel CRUD for public channels happens outside this project; this app
owns the rows other components reference and the provisioning of the
two private channels shared by a pair of friends.
"""
