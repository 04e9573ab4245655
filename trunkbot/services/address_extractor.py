"""
Street address extraction from transcripts.

A best-effort scan against the street gazetteer: "2605 Dwight" becomes a
primary address, "Russell and California" becomes a pair of cross streets.
Street names that double as ordinary words ("King", "Rose") will sometimes
match spuriously; the gazetteer is the only signal used.
"""

from typing import Dict, List, Sequence, Tuple

from trunkbot.models.slack_meta import Address
from trunkbot.utils.text import tokenize


def _index_gazetteer(gazetteer: Sequence[str]) -> Dict[str, List[Tuple[Tuple[str, ...], str]]]:
    """Group street token sequences by first token, longest first."""
    index: Dict[str, List[Tuple[Tuple[str, ...], str]]] = {}
    for street in gazetteer:
        tokens = tuple(tokenize(street))
        if not tokens:
            continue
        entries = index.setdefault(tokens[0], [])
        if any(existing == tokens for existing, _ in entries):
            continue
        entries.append((tokens, street))

    for entries in index.values():
        entries.sort(key=lambda entry: len(entry[0]), reverse=True)
    return index


def _match_street(
    tokens: Sequence[str],
    start: int,
    index: Dict[str, List[Tuple[Tuple[str, ...], str]]],
) -> Tuple[int, str]:
    """Return (token count, canonical name) of the longest street at ``start``."""
    if start >= len(tokens):
        return 0, ""
    for street_tokens, street in index.get(tokens[start], ()):
        end = start + len(street_tokens)
        if tuple(tokens[start:end]) == street_tokens:
            return len(street_tokens), street
    return 0, ""


def extract_address(text: str, gazetteer: Sequence[str]) -> Address:
    """
    Find an address in ``text``.

    A purely numeric token directly followed by a street sets the primary
    address (the last such pair wins). Other street mentions are collected
    once each, in order of first appearance.

    Args:
        text: Call transcript
        gazetteer: Known street names in canonical casing

    Returns:
        Address; ``str(address)`` renders it for display
    """
    index = _index_gazetteer(gazetteer)
    tokens = tokenize(text)
    address = Address()

    i = 0
    while i < len(tokens):
        token = tokens[i]
        if token.isdigit():
            consumed, street = _match_street(tokens, i + 1, index)
            if consumed:
                address.primary_address = f"{token} {street}"
                i += 1 + consumed
                continue

        consumed, street = _match_street(tokens, i, index)
        if consumed:
            address.append_street(street)
            i += consumed
            continue

        i += 1

    return address
