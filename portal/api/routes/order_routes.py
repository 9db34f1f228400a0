# portal/api/routes/order_routes.py
import io
from datetime import date

from flask import Blueprint, request, jsonify, current_app, send_file

from portal.extensions import db
from portal.models.order import ORDER_STATUSES
from portal.services.auth_gateway import admin_required
from portal.services.exporter import CSV_MIMETYPE, XLSX_MIMETYPE, ExportError, TabularExporter
from portal.services.notifications import STATUS_MESSAGES, NotificationError, NotificationSender
from portal.services.stores import OrderStore

order_bp = Blueprint("order_bp", __name__, url_prefix="/api/orders")
# potvrzení nové objednávky volá frontend hned po odeslání (i host bez tokenu)
mail_bp = Blueprint("mail_bp", __name__, url_prefix="/api")

orders_store = OrderStore()
exporter = TabularExporter()
notifier = NotificationSender()

NOTHING_TO_EXPORT = "Žádné objednávky ke zpracování"
DEFAULT_PAGE_SIZE = 13
MAX_PAGE_SIZE = 100


def _attachment(data: bytes, mimetype: str, filename: str):
    return send_file(
        io.BytesIO(data),
        mimetype=mimetype,
        as_attachment=True,
        download_name=filename,
    )


def _no_store(resp):
    resp.headers["Cache-Control"] = "no-store, max-age=0, must-revalidate"
    resp.headers["Pragma"] = "no-cache"
    return resp


def _int_arg(name: str, default: int) -> int:
    raw = request.args.get(name)
    if raw in (None, ""):
        return default
    return int(raw)


def _export_pending(fmt: str):
    pending = orders_store.by_status("pending")
    if not pending:
        return jsonify({"message": NOTHING_TO_EXPORT}), 200

    data = exporter.export_orders(pending, fmt=fmt)
    filename = f"objednavky-cekajici-na-vyrizeni-{date.today().isoformat()}.{fmt}"
    current_app.logger.info("Export %s: %s pending orders", fmt, len(pending))
    return _attachment(data, CSV_MIMETYPE if fmt == "csv" else XLSX_MIMETYPE, filename)


@order_bp.get("")
@admin_required
def list_orders():
    """Admin výpis: ?page=0&pageSize=13&search=novak (jméno, e-mail, id, firma)."""
    try:
        page = _int_arg("page", 0)
        page_size = _int_arg("pageSize", DEFAULT_PAGE_SIZE)
    except ValueError:
        return jsonify({"error": "Neplatné stránkování"}), 400
    if page < 0 or not 1 <= page_size <= MAX_PAGE_SIZE:
        return jsonify({"error": "Neplatné stránkování"}), 400

    search = request.args.get("search", "")
    try:
        orders, total = orders_store.page(page, page_size, search)
        return _no_store(jsonify({
            "orders": [o.to_dict() for o in orders],
            "pagination": {
                "page": page,
                "pageSize": page_size,
                "totalOrders": total,
                "hasMore": (page + 1) * page_size < total,
            },
        }))
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Error fetching orders")
        return jsonify({"error": "Chyba při načítání objednávek"}), 500


@order_bp.get("/<order_id>")
@admin_required
def order_detail(order_id: str):
    try:
        order = orders_store.get(order_id)
        if order is None:
            return jsonify({"error": "Objednávka nenalezena"}), 404
        return _no_store(jsonify(order.to_dict()))
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Error fetching order %s", order_id)
        return jsonify({"error": "Chyba při načítání objednávky"}), 500


@order_bp.get("/export")
@admin_required
def export_csv():
    try:
        return _export_pending("csv")
    except ExportError:
        return jsonify({"message": NOTHING_TO_EXPORT}), 200
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Error exporting orders")
        return jsonify({"error": "Chyba při exportu objednávek"}), 500


@order_bp.get("/export-excel")
@admin_required
def export_excel():
    try:
        return _export_pending("xlsx")
    except ExportError:
        return jsonify({"message": NOTHING_TO_EXPORT}), 200
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Error exporting orders to Excel")
        return jsonify({"error": "Chyba při exportu objednávek do Excelu"}), 500


@order_bp.post("/export-excel-selected")
@admin_required
def export_excel_selected():
    try:
        data = request.get_json(silent=True) or {}
        order_ids = data.get("orderIds")
        if not isinstance(order_ids, list) or not order_ids:
            return jsonify({"error": "Nebyly vybrány žádné objednávky"}), 400

        orders = orders_store.by_ids(order_ids)
        if not orders:
            return jsonify({"error": "Vybrané objednávky nebyly nalezeny"}), 404

        payload = exporter.export_orders(orders, fmt="xlsx")
        filename = f"vybrane-objednavky-{date.today().isoformat()}.xlsx"
        return _attachment(payload, XLSX_MIMETYPE, filename)
    except ExportError:
        return jsonify({"message": NOTHING_TO_EXPORT}), 200
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Error exporting selected orders")
        return jsonify({"error": "Chyba při exportu vybraných objednávek"}), 500


@order_bp.post("/send-status-email")
@admin_required
def send_status_email():
    data = request.get_json(silent=True) or {}
    order_id = data.get("orderId")
    status = data.get("status")

    if not order_id or not status:
        return jsonify({"error": "Missing orderId or status"}), 400
    if status not in ORDER_STATUSES:
        return jsonify({"error": "Neplatný status objednávky"}), 400
    if status not in STATUS_MESSAGES:
        return jsonify({"error": "Tento stav nevyžaduje odeslání emailu"}), 400

    try:
        order = orders_store.get(order_id)
        if order is None:
            current_app.logger.warning("Order not found: %s", order_id)
            return jsonify({"error": "Objednávka nenalezena"}), 404

        notifier.send_status_email(order, status)
        return jsonify({"success": True, "orderId": order.id}), 200
    except NotificationError as e:
        return jsonify({"error": f"Nepodařilo se odeslat e-mail: {e}"}), 502
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Error in send-status-email for %s", order_id)
        return jsonify({"error": "Chyba při odesílání e-mailu"}), 500


@mail_bp.post("/send-email")
def send_order_email():
    data = request.get_json(silent=True) or {}
    order_id = data.get("orderId")
    if not order_id:
        return jsonify({"error": "Missing orderId"}), 400

    try:
        order = orders_store.get(order_id)
        if order is None:
            current_app.logger.warning("Order not found: %s", order_id)
            return jsonify({"error": "Objednávka nenalezena"}), 404

        notifier.send_order_received(order)
        return jsonify({"success": True, "orderId": order.id}), 200
    except NotificationError as e:
        return jsonify({"error": f"Nepodařilo se odeslat e-mail: {e}"}), 502
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Error in send-email for %s", order_id)
        return jsonify({"error": "Chyba při odesílání e-mailu"}), 500
