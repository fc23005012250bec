import re

from common.errors import ValidationError

_DIGIT = re.compile(r"[0-9]")
_ALL_DIGITS = re.compile(r"[0-9]{8}")


def validate(raw, strict: bool = False) -> str:
    """Normalize a raw CEP into its 8-character lookup key.

    One hyphen is stripped. The loose check only requires a digit somewhere in
    the 8 characters; ``strict`` requires all eight to be ASCII digits.
    """
    if not isinstance(raw, str):
        raise ValidationError(f"zipcode must be a string, got {type(raw).__name__}")
    code = raw.replace("-", "", 1)
    if not code or len(code) != 8:
        raise ValidationError(f"zipcode must have 8 characters: {raw!r}")
    if not _DIGIT.search(code):
        raise ValidationError(f"zipcode has no digits: {raw!r}")
    if strict and not _ALL_DIGITS.fullmatch(code):
        raise ValidationError(f"zipcode must be numeric: {raw!r}")
    return code
