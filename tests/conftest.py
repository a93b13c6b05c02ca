"""Pytest configuration and shared fixtures."""

from hypothesis import settings

# Create a profile named "no_deadline" with deadline disabled.
#
# Key generation draws hundreds of preimages, so a single example can exceed
# hypothesis' default per-example deadline on slow machines.
settings.register_profile("no_deadline", deadline=None)
settings.load_profile("no_deadline")
