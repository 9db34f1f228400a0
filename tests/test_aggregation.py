# tests/test_aggregation.py
from datetime import datetime

import pytest

from portal.services import aggregation as agg
from portal.services.aggregation import LineSnapshot, OrderSnapshot, ProfileSnapshot

NOW = datetime(2024, 3, 10, 15, 45)


def line(category="Víno", volume="5", quantity=1, name="Cabernet", product_id=1):
    return LineSnapshot(product_id=product_id, product_name=name, category=category, quantity=quantity, volume=volume)


def order(*items, user_id="u1", created_at=NOW, order_id="o"):
    return OrderSnapshot(id=order_id, user_id=user_id, created_at=created_at, items=tuple(items))


# --- parse_volume / rounding ---------------------------------------------


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("5", 5.0),
        ("20L", 20.0),
        (30, 30.0),
        ("maly", 0.0),
        ("velky", 0.0),
        ("baleni", 0.0),
        ("", 0.0),
        (None, 0.0),
        ("1.5.3", 1.5),
        ("5-10", 5.0),
        ("-", 0.0),
    ],
)
def test_parse_volume(raw, expected):
    assert agg.parse_volume(raw) == expected


def test_parse_volume_strips_commas_instead_of_decimal_separator():
    assert agg.parse_volume("1,5L") == 15.0


def test_round1_is_half_up():
    assert agg.round1(12.34) == 12.3
    assert agg.round1(12.36) == 12.4
    # Pythonovské round(0.25, 1) by dalo 0.2
    assert agg.round1(0.25) == 0.3
    assert agg.round1(0) == 0


def test_percent_guards_zero_whole():
    assert agg.percent(5, 0) == 0
    assert agg.percent(5, 20) == 25.0
    assert agg.percent(1, 3) == 33.3


# --- reporting window ----------------------------------------------------


def test_resolve_cutoff_periods_are_normalized_to_midnight():
    assert agg.resolve_cutoff("all", NOW) is None
    assert agg.resolve_cutoff("week", NOW) == datetime(2024, 3, 3)
    assert agg.resolve_cutoff("month", NOW) == datetime(2024, 2, 9)
    assert agg.resolve_cutoff("year", NOW) == datetime(2023, 3, 10)


def test_resolve_cutoff_unknown_period_falls_back_to_month():
    assert agg.resolve_cutoff("decade", NOW) == agg.resolve_cutoff("month", NOW)


def test_resolve_cutoff_year_from_leap_day():
    assert agg.resolve_cutoff("year", datetime(2024, 2, 29, 8, 0)) == datetime(2023, 3, 1)


def test_trend_months_cross_year_boundary():
    assert agg.trend_months(datetime(2024, 2, 20)) == [
        "2023-09", "2023-10", "2023-11", "2023-12", "2024-01", "2024-02",
    ]
    assert agg.trend_start(datetime(2024, 2, 20)) == datetime(2023, 9, 1)


# --- per-user statistics -------------------------------------------------


def test_user_stats_single_wine_order():
    result = agg.user_stats([order(line("Víno", "5", 3, name="Frankovka"))])

    assert result["total_orders"] == 1
    assert result["total_liters"] == 15
    assert result["average_liters"] == 15
    assert result["last_order_at"] == NOW.isoformat()
    assert result["products"] == [{"name": "Frankovka", "liters": 15}]


def test_user_stats_ignores_gas_and_pet_lines():
    result = agg.user_stats([
        order(line("Dusík", "maly", 2), line("Plyny", "velky", 1), line("PET", "baleni", 6)),
    ])

    assert result == {
        "total_orders": 0,
        "total_liters": 0,
        "average_liters": 0,
        "last_order_at": None,
        "products": [],
    }


def test_user_stats_mixed_order_counts_only_liters():
    result = agg.user_stats([order(line("Víno", "10", 2), line("PET", "baleni", 4, name="Cola"))])

    assert result["total_liters"] == 20
    assert result["total_orders"] == 1
    assert [p["name"] for p in result["products"]] == ["Cabernet"]


def test_user_stats_last_order_is_first_qualifying_one():
    newest_gas_only = order(line("Dusík", "maly", 1), created_at=datetime(2024, 3, 9), order_id="a")
    older_wine = order(line("Víno", "20", 1), created_at=datetime(2024, 3, 1), order_id="b")

    result = agg.user_stats([newest_gas_only, older_wine])

    assert result["last_order_at"] == datetime(2024, 3, 1).isoformat()
    assert result["total_orders"] == 1


def test_user_stats_products_sorted_desc_with_stable_ties():
    result = agg.user_stats([
        order(line(name="A", volume="5"), line(name="B", volume="10"), line(name="C", volume="5")),
    ])
    assert result["products"] == [
        {"name": "B", "liters": 10},
        {"name": "A", "liters": 5},
        {"name": "C", "liters": 5},
    ]


def test_user_stats_average_over_qualifying_orders():
    result = agg.user_stats([
        order(line(volume="10")),
        order(line(volume="5")),
        order(line("PET", "baleni", 3)),
    ])
    assert result["total_orders"] == 2
    assert result["average_liters"] == 7.5


def test_missing_product_name_uses_id():
    result = agg.user_stats([order(line(name=None, product_id=42))])
    assert result["products"][0]["name"] == "#42"


# --- leaderboard ---------------------------------------------------------


def test_leaderboard_lists_every_profile_sorted_by_liters():
    profiles = [
        ProfileSnapshot(id="u1", full_name="Jan", company="A", email="jan@example.com"),
        ProfileSnapshot(id="u2", full_name="Eva", company="B", email="eva@example.com"),
        ProfileSnapshot(id="u3", full_name="Nikdo"),
    ]
    orders = [
        order(line(name="Rulandské", volume="5", quantity=2), user_id="u1"),
        order(line(name="Mošt", category="Nápoje", volume="20"), line(name="Rulandské", volume="10"), user_id="u2"),
        order(line(volume="50"), user_id=None),
        order(line(volume="50"), user_id="admin"),
    ]

    rows = agg.leaderboard(profiles, orders)

    assert len(rows) == len(profiles)
    assert [r["user_id"] for r in rows] == ["u2", "u1", "u3"]
    assert rows[0]["total_liters"] == 30
    assert rows[0]["top_product"] == {"name": "Mošt", "liters": 20}
    assert rows[1]["top_product"] == {"name": "Rulandské", "liters": 10}
    assert rows[2] == {
        "user_id": "u3",
        "full_name": "Nikdo",
        "company": None,
        "email": None,
        "total_orders": 0,
        "total_liters": 0,
        "top_product": None,
    }


def test_leaderboard_top_product_tie_keeps_first_product():
    rows = agg.leaderboard(
        [ProfileSnapshot(id="u1")],
        [order(line(name="První", volume="5"), line(name="Druhý", volume="5"))],
    )
    assert rows[0]["top_product"]["name"] == "První"


# --- summary -------------------------------------------------------------


def _summary(orders, profiles=(), trend_orders=(), orders_count=None, users_count=None):
    return agg.summary(
        users_count=len(profiles) if users_count is None else users_count,
        orders_count=len(orders) if orders_count is None else orders_count,
        profiles=list(profiles),
        orders=list(orders),
        trend_orders=list(trend_orders),
        now=NOW,
    )


def test_summary_of_nothing_degenerates_gracefully():
    result = _summary([])

    assert result["total_liters"] == 0
    assert result["average_liters"] == 0
    assert result["max_order_liters"] == 0
    assert result["active_customers"] == 0
    assert result["top_customers"] == []
    assert result["top_products"] == []
    assert result["category_shares"] == []
    assert result["package_shares"] == []
    assert result["top_package"] is None
    assert len(result["monthly_trend"]) == 6
    assert all(p["liters"] == 0 and p["change_pct"] is None for p in result["monthly_trend"])


def test_summary_category_shares_skip_pet_and_alias_fruit_wine():
    result = _summary([
        order(line("Víno", "10", 2), line("PET", "baleni", 4)),
        order(line("Ovocné", "5", 1, name="Rybíz"), line("Ovocné víno", "3", 1, name="Jahoda")),
    ])

    assert result["total_liters"] == 28
    assert result["category_shares"] == [
        {"category": "Víno", "liters": 20},
        {"category": "Ovocné víno", "liters": 8},
    ]


def test_summary_package_buckets_only_standard_sizes():
    result = _summary([
        order(line(volume="20", quantity=3), line(volume="5", quantity=2), line(volume="15", quantity=1)),
    ])

    assert result["package_shares"] == [
        {"pack": "20L", "liters": 60},
        {"pack": "5L", "liters": 10},
    ]
    assert result["top_package"] == {"pack": "20L", "liters": 60, "percent": 85.7}
    assert result["total_liters"] == 85


def test_summary_averages_and_counts():
    profiles = [ProfileSnapshot(id="u1", full_name="Jan"), ProfileSnapshot(id="u2", full_name="Eva")]
    result = _summary(
        [
            order(line(volume="30"), user_id="u1"),
            order(line(volume="10"), user_id="u1"),
            order(line("Dusík", "maly", 1), user_id="u2"),
        ],
        profiles=profiles,
        orders_count=7,
    )

    assert result["users_count"] == 2
    assert result["orders_count"] == 7
    assert result["active_customers"] == 2
    assert result["average_liters"] == 20
    assert result["max_order_liters"] == 30
    assert result["top_customers"] == [
        {"user_id": "u1", "full_name": "Jan", "company": None, "email": None, "liters": 40},
    ]


def test_summary_top_customers_capped_and_unknown_profile_is_null():
    orders = [order(line(volume=str(10 * (i + 1))), user_id=f"u{i}") for i in range(7)]
    result = _summary(orders, profiles=[ProfileSnapshot(id="u6", full_name="Top", company="Firma")])

    top = result["top_customers"]
    assert len(top) == 5
    assert [c["user_id"] for c in top] == ["u6", "u5", "u4", "u3", "u2"]
    assert top[0]["full_name"] == "Top"
    assert top[1]["full_name"] is None and top[1]["email"] is None


# --- monthly trend -------------------------------------------------------


def test_monthly_trend_sums_months_and_change():
    trend = agg.monthly_trend(
        [
            order(line(volume="20"), created_at=datetime(2024, 2, 3)),
            order(line(volume="10"), created_at=datetime(2024, 3, 1)),
            order(line(volume="15"), created_at=datetime(2024, 3, 8)),
            order(line(volume="99"), created_at=datetime(2023, 9, 30)),
            order(line(volume="99"), created_at=datetime(2024, 4, 1)),
        ],
        now=NOW,
    )

    assert [p["month"] for p in trend] == ["10/2023", "11/2023", "12/2023", "01/2024", "02/2024", "03/2024"]
    assert trend[-2] == {"month": "02/2024", "liters": 20, "change_pct": None}
    assert trend[-1] == {"month": "03/2024", "liters": 25, "change_pct": 25.0}
    assert trend[0]["liters"] == 0
    assert trend[0]["change_pct"] is None


def test_monthly_trend_negative_change():
    trend = agg.monthly_trend(
        [
            order(line(volume="40"), created_at=datetime(2024, 2, 3)),
            order(line(volume="10"), created_at=datetime(2024, 3, 1)),
        ],
        now=NOW,
    )
    assert trend[-1]["change_pct"] == -75.0
