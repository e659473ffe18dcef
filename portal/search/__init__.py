"""
TaxDesk — Search Query Parser

Turns the raw text of the directory search box into a ParsedQuery
(operator + operand) and applies it to a single record.

Operators, checked in this order against the trimmed text:
  =John Smith   → exactMatch   (whole field equals operand)
  ^jo           → startsWith
  @gmail.com    → emailDomain  (email field only, domain after the @)
  smith$        → endsWith
  anything else → contains     (substring of any searchable field)

All comparisons are case-insensitive. One operator per query: there is no
AND/OR syntax. Parsing never fails: anything unrecognised is a plain
contains search, and empty text matches every record.
"""
from typing import NamedTuple

from portal.config import SEARCHABLE_FIELDS

# ============================================================
# OPERATORS
# ============================================================
CONTAINS = "contains"
EXACT_MATCH = "exactMatch"
STARTS_WITH = "startsWith"
ENDS_WITH = "endsWith"
EMAIL_DOMAIN = "emailDomain"

# Leading markers, in precedence order. The trailing "$" is checked after these.
_PREFIXES = (("=", EXACT_MATCH), ("^", STARTS_WITH), ("@", EMAIL_DOMAIN))

_LABELS = {
    CONTAINS: "contains",
    EXACT_MATCH: "is exactly",
    STARTS_WITH: "starts with",
    ENDS_WITH: "ends with",
    EMAIL_DOMAIN: "email domain",
}


class ParsedQuery(NamedTuple):
    operator: str
    operand: str

    @property
    def is_empty(self) -> bool:
        return self.operator == CONTAINS and not self.operand


NEUTRAL_QUERY = ParsedQuery(CONTAINS, "")


# ============================================================
# PARSING
# ============================================================
def parse(search_text: str) -> ParsedQuery:
    """Parse raw search text into a ParsedQuery. Total: never raises."""
    text = (search_text or "").strip()
    if not text:
        return NEUTRAL_QUERY

    for marker, operator in _PREFIXES:
        if text.startswith(marker):
            operand = text[len(marker):].strip()
            # A bare marker has nothing to match against, so search for it literally
            return ParsedQuery(operator, operand) if operand else ParsedQuery(CONTAINS, text)

    if text.endswith("$"):
        operand = text[:-1].strip()
        return ParsedQuery(ENDS_WITH, operand) if operand else ParsedQuery(CONTAINS, text)

    return ParsedQuery(CONTAINS, text)


def describe(query: ParsedQuery) -> str:
    """Human label for a parsed query, e.g. 'email domain gmail.com'."""
    if query.is_empty:
        return ""
    return f"{_LABELS.get(query.operator, query.operator)} {query.operand}"


# ============================================================
# MATCHING
# ============================================================
def field_value(record, field: str) -> str:
    """Read a field from a dict-like or attribute record as text. Missing/None → ''."""
    if isinstance(record, dict):
        value = record.get(field)
    else:
        value = getattr(record, field, None)
    if value is None:
        return ""
    return str(value)


def email_domain(email: str) -> str:
    """Domain portion of an email address, '' if there is no @."""
    if not email or "@" not in email:
        return ""
    return email.rsplit("@", 1)[1].strip().lower()


def _compare(operator: str, value: str, operand: str) -> bool:
    if operator == EXACT_MATCH:
        return value == operand
    if operator == STARTS_WITH:
        return value.startswith(operand)
    if operator == ENDS_WITH:
        return value.endswith(operand)
    return operand in value


def matches(query: ParsedQuery, record, searchable_fields=SEARCHABLE_FIELDS) -> bool:
    """Apply a parsed query to one record."""
    if query.is_empty:
        return True

    operand = query.operand.lower()
    if query.operator == EMAIL_DOMAIN:
        domain = email_domain(field_value(record, "email"))
        return bool(domain) and domain == operand

    for field in searchable_fields:
        if _compare(query.operator, field_value(record, field).lower(), operand):
            return True
    return False
