"""Core snippet-tracker constants (shared by parser, decision engine, stores)."""

# Percentage at/above which a generated region is retagged as modified.
DEFAULT_RETAG_THRESHOLD = 10
# Percentage at/above which tracking markers are stripped.
DEFAULT_MODIFICATION_THRESHOLD = 70

# Region ids are lowercase hex tokens of this length.
ID_LENGTH = 6

# Persisted snapshots not observed for this many days are evicted on save.
DEFAULT_STALENESS_DAYS = 7
SECONDS_PER_DAY = 86_400

SUPPORTED_EXTENSIONS = (".js", ".jsx", ".mjs", ".cjs", ".ts", ".tsx", ".vue")

DEFAULT_METADATA_PATH = ".snippet-tracker/metadata.json"

# Directories never scanned by the report/CLI walkers.
IGNORED_DIRECTORIES = frozenset({"node_modules", ".git", "dist", "build", ".snippet-tracker"})
