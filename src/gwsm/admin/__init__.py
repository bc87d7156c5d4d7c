"""
Admin SDK: Directory (users, groups, members, orgunits), the unique user
aggregation used by the recursive commands and the legacy Shared Contacts feed.
"""

from . import users, groups, members, orgunits, special, contacts
