from typing import Any, Dict, List, Optional

from rapidfuzz import fuzz

from bizpulse.config import FUZZY_THRESHOLD


def weighted_similarity(
    name: str,
    address: str,
    cand_name: str,
    cand_addr: str,
    name_weight: float = 0.25,
    addr_weight: float = 0.75,
) -> float:
    """Weighted name/address similarity in [0, 100]."""
    name_score = fuzz.token_set_ratio(str(name).lower(), str(cand_name).lower()) if name and cand_name else 0
    addr_score = fuzz.partial_ratio(str(address).lower(), str(cand_addr).lower()) if address and cand_addr else 0
    return (name_weight * name_score) + (addr_weight * addr_score)


def best_match(
    name: str,
    address: str,
    candidates: List[Dict[str, Any]],
    name_key: str = "name",
    addr_key: str = "formatted_address",
    threshold: float = FUZZY_THRESHOLD,
) -> Optional[Dict[str, Any]]:
    """
    Return the highest-scoring candidate whose weighted similarity reaches `threshold`.

    Args:
        name (str): Business name.
        address (str): Business address.
        candidates (List[Dict[str, Any]]): Raw candidate records.
        name_key (str): Candidate key holding the name.
        addr_key (str): Candidate key holding the address.
        threshold (float): Minimum weighted score required to consider a match.

    Returns:
        The best matching candidate, or None.
    """
    best, best_score = None, -1.0
    for cand in candidates:
        score = weighted_similarity(name, address, cand.get(name_key) or "", cand.get(addr_key) or "")
        if score >= threshold and score > best_score:
            best, best_score = cand, score
    return best


def names_match(name: str, other: str, threshold: float = FUZZY_THRESHOLD) -> bool:
    if not name or not other:
        return False
    return fuzz.token_set_ratio(name.lower(), other.lower()) >= threshold
