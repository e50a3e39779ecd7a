"""Record Id Parsing — rejects malformed ids before any store access.

Invariants:
    - Only ASCII base-10 integers are well-formed: optional sign, optional
      surrounding whitespace, no underscores, no other digit scripts
    - Malformed ids → RecordValidationError (400)
    - Well-formed ids outside the INTEGER column range can never match a row:
      RecordNotFoundError (404) without a round trip to the store
"""

import re

from stocktake.core.domain_types import RecordId
from stocktake.core.errors import ErrorContext, RecordNotFoundError, RecordValidationError

_MAX_ID = 2**31 - 1
_ID_PATTERN = re.compile(r"\s*[+-]?[0-9]+\s*")


def parse_record_id(
    raw: str | int, context: ErrorContext | None = None,
) -> RecordId:
    """Parse a path segment into a RecordId.

    Raises RecordValidationError for malformed input and RecordNotFoundError
    for integers no stored record can carry.
    """
    if isinstance(raw, bool):
        raise RecordValidationError("ID inválido", "id", context)
    if isinstance(raw, int):
        value = raw
    else:
        text = str(raw)
        if not text.isascii() or not _ID_PATTERN.fullmatch(text):
            raise RecordValidationError("ID inválido", "id", context)
        value = int(text)
    if not 1 <= value <= _MAX_ID:
        raise RecordNotFoundError(value, context)
    return RecordId(value)
