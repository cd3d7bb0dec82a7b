from sqlalchemy.exc import IntegrityError


DUPLICATE_CONSUMER = "Duplicate: Consumer already exists in this area."
MISSING_REQUIRED_FIELDS = "DB Error: Missing required data fields."
INTEGRITY_VIOLATION = "Database Integrity Error: Constraint violation."
UNEXPECTED_FAILURE = "System Error: Unexpected database failure."

NULL_VALUE_MARKERS = ("not-null", "null value", "not null constraint")


def store_reason(exc: IntegrityError) -> str:
    # The driver error only; str(exc) also embeds the SQL statement and its column list.
    orig = exc.orig
    return str(orig if orig is not None else exc)


def classify_integrity_reason(reason: str) -> str:
    msg = reason.lower()
    if "uq_consumer_area" in msg or ("consumer_no" in msg and "area" in msg):
        return DUPLICATE_CONSUMER
    if any(marker in msg for marker in NULL_VALUE_MARKERS):
        return MISSING_REQUIRED_FIELDS
    return INTEGRITY_VIOLATION


def translate_persist_error(exc: Exception) -> str:
    # Short, stable reasons only; driver text never reaches the dead-letter row.
    if isinstance(exc, IntegrityError):
        return classify_integrity_reason(store_reason(exc))
    return UNEXPECTED_FAILURE
