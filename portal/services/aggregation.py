# portal/services/aggregation.py
"""
Agregace objednávek pro statistiky a souhrny v adminu.

Čisté funkce bez přístupu k DB: dostanou snapshoty objednávek (viz
`OrderSnapshot`) už vyfiltrované na období a vrátí slovníky ve tvaru
JSON odpovědi. Všechny tři pohledy (statistika uživatele, žebříček,
souhrn) sdílí jeden průchod položkami `_tally()`.

Litry se počítají jen z kategorií v LITER_CATEGORIES. Plyny a PET nemají
litrový ekvivalent, jejich objem ("maly", "velky", "baleni") se parsuje na 0.
"""
from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Iterable, Sequence

LITER_CATEGORIES = ("Víno", "Nápoje", "Ovocné víno", "Ovocné")
PACKAGE_SIZES = (3, 5, 10, 20, 30, 50)
PERIODS = ("week", "month", "year", "all")

TREND_MONTHS = 6
TOP_CUSTOMERS_LIMIT = 5
UNKNOWN_CATEGORY = "Neznámá"

_NON_NUMERIC = re.compile(r"[^0-9.\-]")
# parseFloat semantika: bere nejdelší číselný prefix ("1.5.3" -> 1.5, "5-10" -> 5)
_LEADING_NUMBER = re.compile(r"-?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)")


# ========================= Vstupní snapshoty =========================

@dataclass(frozen=True)
class LineSnapshot:
    product_id: int | str | None
    product_name: str | None
    category: str | None
    quantity: int
    volume: str | int | float | None

    @property
    def display_name(self) -> str:
        return self.product_name or f"#{self.product_id}"


@dataclass(frozen=True)
class OrderSnapshot:
    id: str
    user_id: str | None
    created_at: datetime
    items: tuple[LineSnapshot, ...] = ()


@dataclass(frozen=True)
class ProfileSnapshot:
    id: str
    full_name: str | None = None
    company: str | None = None
    email: str | None = None
    created_at: datetime | None = None


# ========================= Pomocné funkce =========================

def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_volume(value) -> float:
    """
    Převod objemu na litry: z textu se vyhodí vše kromě číslic, '.' a '-'.
    Nečíselné tokeny ("maly", "velky", "baleni") dají 0.
    Čárka se zahazuje, nebere se jako desetinná ("1,5L" -> 15).
    """
    cleaned = _NON_NUMERIC.sub("", str(value))
    match = _LEADING_NUMBER.match(cleaned)
    if not match:
        return 0.0
    number = float(match.group(0))
    return number if math.isfinite(number) else 0.0


def round1(value: float) -> float:
    """Zaokrouhlení na 1 desetinné místo, polovina nahoru."""
    return math.floor(value * 10 + 0.5) / 10


def percent(part: float, whole: float) -> float:
    if not whole:
        return 0.0
    return math.floor((part / whole) * 1000 + 0.5) / 10


def liters_of(item: LineSnapshot) -> float:
    if item.category not in LITER_CATEGORIES:
        return 0.0
    return parse_volume(item.volume) * (item.quantity or 0)


def normalize_category(category: str | None) -> str:
    # souhrn sjednocuje jen Ovocné -> Ovocné víno, Dusík/Plyny nechává být
    if not category:
        return UNKNOWN_CATEGORY
    if category == "Ovocné":
        return "Ovocné víno"
    return category


def _shift_years(moment: datetime, years: int) -> datetime:
    try:
        return moment.replace(year=moment.year + years)
    except ValueError:
        # 29. 2. v nepřestupném roce přeteče na 1. 3.
        return moment.replace(year=moment.year + years, month=3, day=1)


def _shift_months(year: int, month: int, months: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + months
    return index // 12, index % 12 + 1


def resolve_cutoff(period: str | None, now: datetime | None = None) -> datetime | None:
    """
    Spodní hranice `created_at` pro období week/month/year; pro 'all' None.
    Neznámé období se chová jako 'month'. Hranice se zarovná na půlnoc,
    aby se započítaly i dřívější objednávky ze stejného dne.
    """
    if not period or period == "all":
        return None

    now = now or _utcnow()
    if period == "week":
        cutoff = now - timedelta(days=7)
    elif period == "year":
        cutoff = _shift_years(now, -1)
    else:
        cutoff = now - timedelta(days=30)

    return cutoff.replace(hour=0, minute=0, second=0, microsecond=0)


def month_key(moment: datetime) -> str:
    return f"{moment.year}-{moment.month:02d}"


def month_label(key: str) -> str:
    year, month = key.split("-")
    return f"{month}/{year}"


def trend_months(now: datetime | None = None) -> list[str]:
    """Klíče posledních TREND_MONTHS kalendářních měsíců včetně aktuálního, od nejstaršího."""
    now = now or _utcnow()
    keys = []
    for back in range(TREND_MONTHS - 1, -1, -1):
        year, month = _shift_months(now.year, now.month, -back)
        keys.append(f"{year}-{month:02d}")
    return keys


def trend_start(now: datetime | None = None) -> datetime:
    now = now or _utcnow()
    year, month = _shift_months(now.year, now.month, -(TREND_MONTHS - 1))
    return datetime(year, month, 1)


# ========================= Společný průchod =========================

@dataclass
class _Tally:
    total_liters: float = 0.0
    qualifying_orders: int = 0      # objednávky s aspoň jednou nenulovou položkou
    liter_orders: int = 0           # objednávky s kladným součtem litrů
    max_order_liters: float = 0.0
    last_order_at: datetime | None = None
    products: dict[str, float] = field(default_factory=dict)
    customers: dict[str, float] = field(default_factory=dict)
    categories: dict[str, float] = field(default_factory=dict)
    packages: dict[str, float] = field(default_factory=dict)


def _add(totals: dict[str, float], key: str, liters: float) -> None:
    totals[key] = totals.get(key, 0.0) + liters


def _tally(orders: Iterable[OrderSnapshot]) -> _Tally:
    tally = _Tally()
    for order in orders:
        has_line = False
        order_liters = 0.0

        for item in order.items:
            liters = liters_of(item)
            if not liters:
                continue

            has_line = True
            order_liters += liters
            tally.total_liters += liters

            _add(tally.products, item.display_name, liters)
            if order.user_id:
                _add(tally.customers, order.user_id, liters)
            _add(tally.categories, normalize_category(item.category), liters)

            size = parse_volume(item.volume)
            if size in PACKAGE_SIZES:
                _add(tally.packages, f"{int(size)}L", liters)

        if has_line:
            tally.qualifying_orders += 1
            if tally.last_order_at is None:
                tally.last_order_at = order.created_at
        if order_liters > 0:
            tally.liter_orders += 1
            tally.max_order_liters = max(tally.max_order_liters, order_liters)

    return tally


def _ranked(totals: dict[str, float], label: str) -> list[dict]:
    rows = [{label: key, "liters": round1(liters)} for key, liters in totals.items()]
    # sort je stabilní i s reverse=True -> při shodě zůstává pořadí výskytu
    rows.sort(key=lambda row: row["liters"], reverse=True)
    return rows


def _average(total: float, count: int) -> float:
    return round1(total / count) if count > 0 else 0


# ========================= Pohledy =========================

def user_stats(orders: Sequence[OrderSnapshot]) -> dict:
    """
    Statistika jednoho uživatele. `orders` musí být seřazené od nejnovější,
    `last_order_at` je první objednávka s litry.
    """
    tally = _tally(orders)
    return {
        "total_orders": tally.qualifying_orders,
        "total_liters": round1(tally.total_liters),
        "average_liters": _average(tally.total_liters, tally.qualifying_orders),
        "last_order_at": tally.last_order_at.isoformat() if tally.last_order_at else None,
        "products": _ranked(tally.products, "name"),
    }


def leaderboard(profiles: Sequence[ProfileSnapshot], orders: Iterable[OrderSnapshot]) -> list[dict]:
    """Jeden řádek na profil (i bez objednávek), seřazeno podle litrů."""
    by_user: dict[str, list[OrderSnapshot]] = {}
    for order in orders:
        if not order.user_id:
            continue
        by_user.setdefault(order.user_id, []).append(order)

    rows = []
    for profile in profiles:
        tally = _tally(by_user.get(profile.id, ()))
        top_product = None
        if tally.products:
            name, liters = max(tally.products.items(), key=lambda entry: entry[1])
            top_product = {"name": name, "liters": round1(liters)}

        rows.append({
            "user_id": profile.id,
            "full_name": profile.full_name,
            "company": profile.company,
            "email": profile.email,
            "total_orders": tally.qualifying_orders,
            "total_liters": round1(tally.total_liters),
            "top_product": top_product,
        })

    rows.sort(key=lambda row: row["total_liters"], reverse=True)
    return rows


def monthly_trend(orders: Iterable[OrderSnapshot], now: datetime | None = None) -> list[dict]:
    """Litry za posledních 6 kalendářních měsíců, nezávisle na zvoleném období."""
    months = trend_months(now)
    totals: dict[str, float] = {key: 0.0 for key in months}

    for order in orders:
        key = month_key(order.created_at)
        if key not in totals:
            continue
        for item in order.items:
            totals[key] += liters_of(item)

    points = []
    previous: float | None = None
    for key in months:
        liters = round1(totals[key])
        change_pct = None
        if previous is not None and previous > 0:
            change_pct = percent(liters - previous, previous)
        points.append({"month": month_label(key), "liters": liters, "change_pct": change_pct})
        previous = liters
    return points


def summary(
    *,
    users_count: int,
    orders_count: int,
    profiles: Sequence[ProfileSnapshot],
    orders: Sequence[OrderSnapshot],
    trend_orders: Iterable[OrderSnapshot],
    now: datetime | None = None,
) -> dict:
    """
    Souhrn za celou platformu.

    `orders` jsou objednávky registrovaných uživatelů v období,
    `orders_count` je hrubý počet všech objednávek v období (i hostů),
    `trend_orders` objednávky od `trend_start()`.
    """
    tally = _tally(orders)
    profile_map = {profile.id: profile for profile in profiles}

    top_customers = []
    for user_id, liters in tally.customers.items():
        profile = profile_map.get(user_id)
        top_customers.append({
            "user_id": user_id,
            "full_name": (profile.full_name if profile else None) or None,
            "company": (profile.company if profile else None) or None,
            "email": (profile.email if profile else None) or None,
            "liters": round1(liters),
        })
    top_customers.sort(key=lambda row: row["liters"], reverse=True)

    package_shares = _ranked(tally.packages, "pack")
    top_package = None
    if package_shares:
        total_package_liters = sum(row["liters"] for row in package_shares)
        top_package = {
            "pack": package_shares[0]["pack"],
            "liters": package_shares[0]["liters"],
            "percent": percent(package_shares[0]["liters"], total_package_liters),
        }

    return {
        "users_count": users_count,
        "orders_count": orders_count,
        "total_liters": round1(tally.total_liters),
        "active_customers": len({order.user_id for order in orders if order.user_id}),
        "average_liters": _average(tally.total_liters, tally.liter_orders),
        "max_order_liters": round1(tally.max_order_liters),
        "top_customers": top_customers[:TOP_CUSTOMERS_LIMIT],
        "top_products": _ranked(tally.products, "name"),
        "category_shares": _ranked(tally.categories, "category"),
        "package_shares": package_shares,
        "top_package": top_package,
        "monthly_trend": monthly_trend(trend_orders, now),
    }
