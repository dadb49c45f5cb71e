"""
Settings package. Defaults to the base settings.
"""
from .base import *  # noqa: F401,F403
