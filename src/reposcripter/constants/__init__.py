"""Configuration constants.

Re-exports all config for convenient importing:
    from reposcripter.constants import STATUS_START, MAX_TOKENS
"""

from reposcripter.constants.generation import *  # noqa: F403
from reposcripter.constants.llm import *  # noqa: F403
from reposcripter.constants.files import *  # noqa: F403
