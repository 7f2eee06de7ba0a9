"""README generation configuration.

Status messages reported to the consumer before each pipeline stage, and the
literals used when deriving the document title.
"""

# =============================================================================
# Status Messages
# =============================================================================
# Reported through the status callback immediately before the stage they
# describe. STATUS_SUMMARIZE_FILE is a format string taking the file path.

STATUS_START = "Initializing documentation process..."
STATUS_ANALYZE_STRUCTURE = "Analyzing repository structure..."
STATUS_SUMMARIZE_FILE = "Summarizing {path}..."
STATUS_SYNTHESIZE_ARCHITECTURE = "Synthesizing high-level architecture..."
STATUS_WRITE_INTRODUCTION = "Writing project introduction..."
STATUS_WRITE_INSTALLATION = "Generating installation instructions..."
STATUS_WRITE_USAGE = "Creating usage examples..."
STATUS_WRITE_API_REFERENCE = "Building API reference..."
STATUS_FINALIZE = "Finalizing README.md..."

# =============================================================================
# Document Title
# =============================================================================
# The title is the last path segment of the target identifier. When that
# segment is empty the fallback is used instead.

DEFAULT_PROJECT_TITLE = "New Project"

# =============================================================================
# Degraded Context
# =============================================================================
# Used in section context when a referenced file summary does not exist.

MISSING_SUMMARY_PLACEHOLDER = "No summary is available for this file."
