# portal/services/formatters.py
from __future__ import annotations

import re
from datetime import datetime

GAS_CATEGORIES = ("Dusík", "Plyny")


def format_volume(volume, category: str | None) -> str:
    """Objem položky pro lidi: PET je balení, plyny malá/velká lahev, jinak litry."""
    if category == "PET":
        return "balení"
    if category in GAS_CATEGORIES:
        return "malý" if volume == "maly" else "velký"
    return f"{volume}L"


def format_item_line(quantity: int, volume, category: str | None) -> str:
    return f"{quantity}x {format_volume(volume, category)}"


def format_date_cs(moment: datetime | None) -> str:
    # český zápis bez nul: 5. 3. 2025
    if not isinstance(moment, datetime):
        return ""
    return f"{moment.day}. {moment.month}. {moment.year}"


# pořadí kategorií v e-mailu; Dusík a Plyny se zobrazují společně jako Plyny
MAIL_CATEGORY_ORDER = ("Nápoje", "Víno", "Ovocné víno", "Plyny", "PET")
_VOLUME_NUMBER = re.compile(r"(\d+(?:[.,]\d+)?)")


def mail_category(category: str | None) -> str:
    if category in GAS_CATEGORIES:
        return "Plyny"
    return category or "Ostatní"


def _category_rank(category: str) -> int:
    try:
        return MAIL_CATEGORY_ORDER.index(category)
    except ValueError:
        return len(MAIL_CATEGORY_ORDER)


def volume_sort_value(volume) -> float:
    """Číselný objem pro řazení; velká lahev > malá > balení > neznámé."""
    text = str(volume or "").lower().strip()
    match = _VOLUME_NUMBER.search(text)
    if match:
        return float(match.group(1).replace(",", "."))
    if "velk" in text:
        return 2
    if "mal" in text:
        return 1
    if "balen" in text:
        return 0
    return -1


def sort_order_items(items):
    """
    Položky pro e-mail: podle kategorie, pak od největšího objemu
    a množství, nakonec podle názvu.
    """
    def key(it):
        product = it.product
        category = mail_category(product.category if product else None)
        name = (product.name if product else "") or ""
        return (
            _category_rank(category),
            -volume_sort_value(it.volume),
            -(it.quantity or 0),
            name.casefold(),
        )

    return sorted(items, key=key)


def order_number(order_id) -> str:
    return str(order_id)[:8].upper()
