# portal/api/routes/stats_routes.py
from flask import Blueprint, jsonify, request, current_app

from portal.extensions import db
from portal.models._time import utcnow
from portal.services import aggregation
from portal.services.auth_gateway import admin_required
from portal.services.stores import OrderStore, ProfileStore, order_snapshot, profile_snapshot

api_stats = Blueprint("api_stats", __name__, url_prefix="/api")

orders_store = OrderStore()
profiles_store = ProfileStore()


def _period() -> str:
    return (request.args.get("period") or "all").strip()


def _no_store(resp):
    resp.headers["Cache-Control"] = "no-store, max-age=0, must-revalidate"
    resp.headers["Pragma"] = "no-cache"
    return resp


@api_stats.get("/stats")
@admin_required
def stats_leaderboard():
    """Žebříček zákazníků podle litrů za zvolené období."""
    try:
        cutoff = aggregation.resolve_cutoff(_period(), utcnow())
        profiles = [profile_snapshot(p) for p in profiles_store.customers()]
        orders = [order_snapshot(o) for o in orders_store.customer_orders(cutoff)]
        return _no_store(jsonify(aggregation.leaderboard(profiles, orders)))
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Error building stats")
        return jsonify({"error": "Failed to build stats"}), 500


@api_stats.get("/stats/<user_id>")
@admin_required
def stats_for_user(user_id: str):
    try:
        user_id = (user_id or "").strip()
        if not user_id:
            return jsonify({"error": "Missing user id"}), 400

        profile = profiles_store.get(user_id)
        if profile is None:
            return jsonify({"error": "User not found"}), 404

        cutoff = aggregation.resolve_cutoff(_period(), utcnow())
        orders = [order_snapshot(o) for o in orders_store.for_user(user_id, cutoff)]
        result = aggregation.user_stats(orders)

        return _no_store(jsonify({
            "profile": {
                "id": profile.id,
                "full_name": profile.full_name,
                "company": profile.company,
                "email": profile.email,
                "created_at": profile.created_at.isoformat() if profile.created_at else None,
            },
            "stats": {
                "total_orders": result["total_orders"],
                "total_liters": result["total_liters"],
                "average_liters": result["average_liters"],
                "last_order_at": result["last_order_at"],
            },
            "products": result["products"],
        }))
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Error building user stats for %s", user_id)
        return jsonify({"error": "Failed to build user stats"}), 500


@api_stats.get("/summary")
@admin_required
def summary():
    try:
        # jeden "teď" pro období i trend
        now = utcnow()
        cutoff = aggregation.resolve_cutoff(_period(), now)

        profiles = [profile_snapshot(p) for p in profiles_store.customers()]
        orders = [order_snapshot(o) for o in orders_store.customer_orders(cutoff)]
        trend_orders = [
            order_snapshot(o)
            for o in orders_store.customer_orders(aggregation.trend_start(now), newest_first=False)
        ]

        body = aggregation.summary(
            users_count=profiles_store.count_customers(),
            orders_count=orders_store.count(cutoff),
            profiles=profiles,
            orders=orders,
            trend_orders=trend_orders,
            now=now,
        )
        return _no_store(jsonify(body))
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Error building summary")
        return jsonify({"error": "Failed to build summary"}), 500
