"""File eligibility configuration.

These settings control which snapshot files are summarized. Dependency
folders, bundles and dotfiles never describe the project's own logic.
"""

# =============================================================================
# Eligible Extensions
# =============================================================================
# Only files with these suffixes are sent to the file summarizer. The default
# matches the bundled sample project (a Node.js service).

DEFAULT_EXTENSIONS = (".js",)

# =============================================================================
# Exclusions
# =============================================================================
# Glob patterns matched against every path component.

DEFAULT_EXCLUDES = (
    ".*",
    "node_modules",
    "vendor",
    "build",
    "dist",
    "*.min.js",
    "*.bundle.js",
    "*.chunk.js",
    "*.map",
)

# =============================================================================
# Size Limits
# =============================================================================

MAX_FILE_SIZE_KB = 500
