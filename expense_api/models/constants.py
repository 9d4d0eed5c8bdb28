"""Domain constants for validation and query options."""

MAX_DESCRIPTION_LENGTH = 255

# Query value accepted by GET /expenses?sort=
SORT_DATE_DESC = "date_desc"

IDEMPOTENCY_KEY_HEADER = "Idempotency-Key"

# Upper bound of a SQLite INTEGER column
MAX_MINOR_UNITS = 2**63 - 1
