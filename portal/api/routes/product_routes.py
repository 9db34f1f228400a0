# portal/api/routes/product_routes.py
from flask import Blueprint, jsonify, request, current_app

from portal.models.product import PRODUCT_CATEGORIES
from portal.services.stores import ProductStore

api_products = Blueprint("api_products", __name__, url_prefix="/api/products")

products_store = ProductStore()


@api_products.get("")
def list_products():
    """Katalog seřazený podle názvu, volitelně ?category=Víno&category=PET."""
    categories = [c.strip() for c in request.args.getlist("category") if c.strip()]
    unknown = [c for c in categories if c not in PRODUCT_CATEGORIES]
    if unknown:
        return jsonify({"error": f"Neznámá kategorie: {', '.join(unknown)}"}), 400

    try:
        products = products_store.by_category(categories) if categories else products_store.all()
        return jsonify([p.to_dict() for p in products])
    except Exception:
        current_app.logger.exception("Error fetching products")
        return jsonify({"error": "Chyba při načítání produktů"}), 500
