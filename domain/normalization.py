"""Domain normalization — pure functions, zero external dependencies.

Only stdlib imports allowed.
"""

import re

_NON_DIGITS = re.compile(r"\D")
_WHITESPACE_RUN = re.compile(r"\s+")


def normalize_name(name):
    """Normalize a customer name: trim and case-fold."""
    if not isinstance(name, str):
        return ""
    return name.strip().casefold()


def normalize_phone(phone):
    """Normalize a phone number to its digits only."""
    if not isinstance(phone, str):
        return ""
    return _NON_DIGITS.sub("", phone)


def normalize_address(address):
    """Normalize an address: case-fold, collapse whitespace runs, trim."""
    if not isinstance(address, str):
        return ""
    return _WHITESPACE_RUN.sub(" ", address.casefold()).strip()


def normalized_phones(phones):
    """Return the set of non-empty normalized numbers from a phone list."""
    if not phones:
        return set()
    if isinstance(phones, str):
        phones = [phones]
    result = {normalize_phone(p) for p in phones}
    result.discard("")
    return result
