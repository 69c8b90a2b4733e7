"""
Constants for the BCI tracker.
"""

from pathlib import Path

MODULE_ROOT = Path(__file__).parent

DATA_DIR = MODULE_ROOT / "data"

PRESET_COLLECTIONS_PATH = DATA_DIR / "collections.yaml"

DB_NAME = "bci_tracker.db"

# Pagination bounds for record and collection listings
DEFAULT_PAGE_SIZE = 50
MIN_PAGE_SIZE = 1
MAX_PAGE_SIZE = 200
# Keeps (page - 1) * page_size inside SQLite's signed 64-bit OFFSET
MAX_PAGE = (2**63 - 1) // MAX_PAGE_SIZE

# Value that disables the category filter
ALL_CATEGORIES = "all"

DEFAULT_TRENDING_TOP_N = 15

DEFAULT_COLLECTION_ICON = "📁"

# Briefing selection
BRIEFING_WINDOW_HOURS = 24
BRIEFING_SECTION_SIZE = 5
BRIEFING_TRENDING_TOP_N = 10
BRIEFING_HIGHLIGHT_MIN_SCORE = 60

# Longest abstract kept by the normalizer, before the ellipsis
ABSTRACT_MAX_LENGTH = 300
