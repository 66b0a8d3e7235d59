"""Actor roles.

Values are stored as TEXT in the database and in audit entries.
"""

from enum import Enum


class UserRole(str, Enum):
    USER = "USER"        # Student owning the documents
    PARTNER = "PARTNER"  # Referring partner organization (first-tier reviewer)
    ADMIN = "ADMIN"      # Platform operator (Discovery, second-tier reviewer)
