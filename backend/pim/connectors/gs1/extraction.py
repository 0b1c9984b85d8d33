"""
Response shape extraction for GS1 registry payloads

Registry responses differ by API version and endpoint, and the GTIN we care
about can sit at several nesting levels. Each rule is a key path tried in
order; the first one resolving to a value wins.
"""
from typing import Any, Optional, Sequence, Tuple, Union

from pim.domain.gtin import digits_only

PathKey = Union[str, int]
Path = Tuple[PathKey, ...]


# Ordered by priority
GTIN_EXTRACTION_RULES: Sequence[Path] = (
    ("gtin",),
    ("gs1TradeItemIdentificationKey", "gtin"),
    ("product", "gtin"),
    ("product", "gs1TradeItemIdentificationKey", "gtin"),
    ("data", "gtin"),
    ("data", "gs1TradeItemIdentificationKey", "gtin"),
    ("data", "product", "gs1TradeItemIdentificationKey", "gtin"),
    ("result", "gtin"),
    ("products", 0, "gtin"),
    ("products", 0, "gs1TradeItemIdentificationKey", "gtin"),
    ("codigoGtin",),
)

STATUS_EXTRACTION_RULES: Sequence[Path] = (
    ("gtinStatusCode",),
    ("status",),
    ("product", "gtinStatusCode"),
    ("data", "gtinStatusCode"),
    ("data", "status"),
    ("products", 0, "gtinStatusCode"),
)

ERROR_MESSAGE_RULES: Sequence[Path] = (
    ("message",),
    ("error_description",),
    ("error", "message"),
    ("error",),
    ("errors", 0, "message"),
    ("mensagem",),
    ("detail",),
)

# 2xx bodies that still report a rejection: an explicit false flag, or an
# error entry with neither a GTIN nor a product record next to it
FAILURE_FLAG_RULES: Sequence[Path] = (
    ("ok",),
    ("success",),
)

FAILURE_ERROR_RULES: Sequence[Path] = (
    ("error",),
    ("errors",),
)

PRODUCT_PRESENCE_RULES: Sequence[Path] = (
    ("product",),
    ("products",),
    ("data",),
)


def resolve_path(body: Any, path: Path) -> Optional[Any]:
    """Walk a key path through nested dicts/lists; None if any step is missing"""
    current = body
    for key in path:
        if isinstance(key, int):
            if not isinstance(current, list) or len(current) <= key:
                return None
            current = current[key]
        else:
            if not isinstance(current, dict) or key not in current:
                return None
            current = current[key]
    return current


def first_match(body: Any, rules: Sequence[Path], accept: Tuple[type, ...] = (object,)) -> Optional[Any]:
    """First non-empty value of an accepted type; rules yielding other types are skipped"""
    for path in rules:
        value = resolve_path(body, path)
        if value in (None, "", [], {}):
            continue
        if isinstance(value, bool) and bool not in accept:
            continue
        if isinstance(value, accept):
            return value
    return None


def extract_gtin(body: Any) -> Optional[str]:
    """Assigned or confirmed GTIN from a registry response, digits only"""
    for path in GTIN_EXTRACTION_RULES:
        value = resolve_path(body, path)
        if isinstance(value, (str, int)) and not isinstance(value, bool):
            digits = digits_only(str(value))
            if digits:
                return digits
    return None


def extract_status(body: Any) -> Optional[str]:
    value = first_match(body, STATUS_EXTRACTION_RULES, accept=(str, int))
    return str(value) if value is not None else None


def extract_error_message(body: Any, status: int) -> str:
    """Registry-supplied human message, or a generic one"""
    value = first_match(body, ERROR_MESSAGE_RULES, accept=(str,))
    if value is not None:
        return value
    return f"error {status}"


def is_failure_envelope(body: Any) -> bool:
    """
    True when a 2xx body actually reports a rejected call

    Relays answer HTTP 200 whatever happened; the outcome is in the body.
    """
    if not isinstance(body, dict):
        return False
    for path in FAILURE_FLAG_RULES:
        if resolve_path(body, path) is False:
            return True
    if first_match(body, FAILURE_ERROR_RULES) is None:
        return False
    return extract_gtin(body) is None and first_match(body, PRODUCT_PRESENCE_RULES) is None
