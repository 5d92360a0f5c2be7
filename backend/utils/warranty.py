# backend/utils/warranty.py
import re
from datetime import date, datetime
from typing import Optional, Union

from dateutil.relativedelta import relativedelta

_WARRANTY_RE = re.compile(r"(\d+)\s*(year|month|week|day)s?", re.IGNORECASE)


def warranty_expiry(text: Optional[str], start: Union[date, datetime, None]) -> Optional[date]:
    """Turn "3 Years" / "18 months" / "2 weeks" into an absolute expiry date.

    Only the first "<number> <unit>" pair counts. Empty or unparseable text gives None.
    """
    if not text or start is None:
        return None

    match = _WARRANTY_RE.search(text)
    if not match:
        return None

    amount = int(match.group(1))
    unit = match.group(2).lower()
    if isinstance(start, datetime):
        start = start.date()

    if unit == "year":
        return start + relativedelta(years=amount)
    if unit == "month":
        return start + relativedelta(months=amount)
    if unit == "week":
        return start + relativedelta(weeks=amount)
    return start + relativedelta(days=amount)
