"""Project settings for contentnorm.

Plain module constants.  Callers that need different behaviour pass explicit
arguments (or a YAML profile, see :mod:`contentnorm.profiles`); nothing here
is mutated at runtime.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Project identity
# ---------------------------------------------------------------------------
PROJECT_NAME = "contentnorm"

# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------
# Fall back to dateparser for free-form publish-time text that is neither
# ISO-8601 nor RFC-822.  Off by default: strict parsing only.
LENIENT_DATES = False

# ---------------------------------------------------------------------------
# Auxiliary metadata (embedded JSON flattened into a tree)
# ---------------------------------------------------------------------------
AUX_METADATA_TAG = "entry-metadata"

# One of "empty" | "report" | "ignore" (see extractors.jsontree.NullBehavior)
DEFAULT_NULL_BEHAVIOR = "empty"

# ---------------------------------------------------------------------------
# Content splitting
# ---------------------------------------------------------------------------
DEFAULT_CONTAINER_TAG = "p"

# ---------------------------------------------------------------------------
# Feeds
# ---------------------------------------------------------------------------
# Enclosure / media types accepted as entry images
ALLOWED_IMAGE_TYPES: frozenset[str] = frozenset(
    {"image/png", "image/jpg", "image/jpeg", "image/gif"},
)

# ---------------------------------------------------------------------------
# Sitemaps
# ---------------------------------------------------------------------------
# Upper bound for plain-text (one URL per line) sitemaps
MAX_SITEMAP_URLS = 500

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
LOG_LEVEL = "INFO"
LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"
