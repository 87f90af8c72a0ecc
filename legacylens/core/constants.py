"""Shared constants for legacylens.

Defaults used by the configuration layer, the scanner and the
correlation engine.
"""

# =============================================================================
# Output
# =============================================================================

DEFAULT_OUTPUT_DIR = "build/jsp-json"
SUMMARY_FILE = "summary.json"
MIGRATION_REPORT_BASENAME = "migration-report"

# =============================================================================
# Scanning
# =============================================================================

DEFAULT_EXCLUDE_PATTERNS = (
    "**/target/**",
    "**/.git/**",
    "**/node_modules/**",
)

# Directories never worth descending into, whatever the globs say
SKIP_DIRECTORIES = frozenset({
    ".git",
    ".svn",
    ".hg",
    ".idea",
    "node_modules",
    "__pycache__",
})

PAGE_EXTENSIONS = (".jsp", ".jspf")
HTML_EXTENSIONS = (".html", ".htm")
JAVA_EXTENSIONS = (".java",)

# =============================================================================
# Naming conventions
# =============================================================================

DEFAULT_CONTROLLER_PATTERNS = ("%sAction", "%sController", "%sDispatchAction")
DEFAULT_FORM_BEAN_SUFFIXES = ("Form", "Command", "Request", "Model", "Dto")

FALLBACK_CONTROLLER_PATTERN = "%sAction"
FALLBACK_FORM_BEAN_SUFFIX = "Form"
