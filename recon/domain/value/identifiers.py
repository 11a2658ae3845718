"""Strongly typed identifiers.

Auth provider ids are opaque strings (UUIDs on the hosted platform, but
nothing here relies on that), so identifiers wrap ``str``.
"""

from typing import NewType

UserId = NewType("UserId", str)
ExternalId = NewType("ExternalId", str)
SettingsId = NewType("SettingsId", str)
ProfileId = NewType("ProfileId", str)
