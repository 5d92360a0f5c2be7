# backend/utils/serials.py
from typing import List, Optional


def split_serials(text: Optional[str]) -> List[str]:
    # "SN1, SN2,,SN1" -> ["SN1", "SN2"]
    if not text:
        return []
    seen = []
    for part in text.split(","):
        serial = part.strip()
        if serial and serial not in seen:
            seen.append(serial)
    return seen


def join_serials(serials: List[str]) -> str:
    return ", ".join(serials)
