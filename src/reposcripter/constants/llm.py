"""LLM call defaults.

Used when neither the caller nor config.ini sets a value.
"""

# Upper bound on response length; a README section fits well inside it.
MAX_TOKENS = 8192

DEFAULT_TEMPERATURE = 0.7
