"""Pytest configuration and shared fixtures."""

import os

from hypothesis import settings

# Must be set before stake_sync is imported: retry policies are chosen at import.
if "STAKE_SYNC_ENV" not in os.environ:
    os.environ["STAKE_SYNC_ENV"] = "test"

# Create a profile named "no_deadline" with deadline disabled.
settings.register_profile("no_deadline", deadline=None)
settings.load_profile("no_deadline")
