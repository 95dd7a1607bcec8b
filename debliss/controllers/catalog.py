from flask_smorest import Blueprint
from flask.views import MethodView

from debliss import db
from debliss.models import MenuItem, Accompaniment
from debliss.schemas import (
    MenuItemSchema, PriceUpdateSchema,
    AccompanimentSchema, AccompanimentUpdateSchema
)
from debliss.services.helper import get_item_or_404, commit_or_abort


blp = Blueprint("Catalog", __name__, description="Menu items and accompaniments")


def menu_with_accompaniments(items):
    """Attach each item's allowed, available accompaniments in allow-list order."""
    allowed_ids = {
        acc_id for item in items for acc_id in (item.allowed_accompaniments or [])
    }
    accompaniments = {}
    if allowed_ids:
        accompaniments = {
            acc.id: acc
            for acc in Accompaniment.query.filter(
                Accompaniment.id.in_(allowed_ids),
                Accompaniment.available.isnot(False)
            ).all()
        }

    menu = []
    for item in items:
        data = item.to_dict()
        data["accompaniments"] = [
            accompaniments[acc_id].to_dict()
            for acc_id in (item.allowed_accompaniments or [])
            if acc_id in accompaniments
        ]
        menu.append(data)
    return menu


@blp.route("/menu")
class Menu(MethodView):
    def get(self):
        items = MenuItem.query.filter_by(available=True).order_by(MenuItem.id).all()
        return menu_with_accompaniments(items)


@blp.route("/admin/create-menu-item", methods=["POST"])
@blp.arguments(MenuItemSchema)
def create_menu_item(data):
    item = MenuItem(
        name=data["name"],
        price=data["price"],
        category=data["category"],
        image=data.get("image"),
        description=data.get("description", ""),
        available=data.get("available", True),
        allowed_accompaniments=data.get("allowed_accompaniments") or [],
    )
    db.session.add(item)
    commit_or_abort("Server error while saving menu item")
    return {"success": True, "item": item.to_dict()}


@blp.route("/admin/update-menu-item/<int:item_id>", methods=["PUT"])
@blp.arguments(MenuItemSchema(partial=True))
def update_menu_item(data, item_id):
    item = get_item_or_404(MenuItem, item_id, "Item")
    for key, value in data.items():
        # An empty image URL keeps the current image
        if key == "image" and not value:
            continue
        setattr(item, key, value)
    commit_or_abort("Failed to update item")
    return {"success": True, "item": item.to_dict()}


@blp.route("/admin/update-price", methods=["POST"])
@blp.arguments(PriceUpdateSchema)
def update_price(data):
    item = get_item_or_404(MenuItem, data["id"], "Item")
    item.price = data["price"]
    commit_or_abort("Update failed")
    menu_items = MenuItem.query.order_by(MenuItem.id).all()
    return {"success": True, "menuItems": [m.to_dict() for m in menu_items]}


@blp.route("/admin/delete-menu-item/<int:item_id>", methods=["DELETE"])
def delete_menu_item(item_id):
    item = get_item_or_404(MenuItem, item_id, "Item")
    db.session.delete(item)
    commit_or_abort("Failed to delete item")
    return {"success": True}


@blp.route("/accompaniments")
class AccompanimentList(MethodView):
    def get(self):
        accompaniments = Accompaniment.query.filter_by(
            available=True).order_by(Accompaniment.id).all()
        return [acc.to_dict() for acc in accompaniments]


@blp.route("/admin/create-accompaniment", methods=["POST"])
@blp.arguments(AccompanimentSchema)
def create_accompaniment(data):
    accompaniment = Accompaniment(**data)
    db.session.add(accompaniment)
    commit_or_abort("Server error while creating accompaniment")
    return {"success": True, "accompaniment": accompaniment.to_dict()}


@blp.route("/admin/update-accompaniment", methods=["POST"])
@blp.arguments(AccompanimentUpdateSchema)
def update_accompaniment(data):
    accompaniment = get_item_or_404(Accompaniment, data.pop("id"), "Accompaniment")
    for key, value in data.items():
        setattr(accompaniment, key, value)
    commit_or_abort("Server error while updating accompaniment")
    return {"success": True, "accompaniment": accompaniment.to_dict()}


@blp.route("/admin/delete-accompaniment/<int:accompaniment_id>", methods=["DELETE"])
def delete_accompaniment(accompaniment_id):
    accompaniment = get_item_or_404(Accompaniment, accompaniment_id, "Accompaniment")
    db.session.delete(accompaniment)
    commit_or_abort("Server error while deleting accompaniment")
    return {"success": True, "message": "Accompaniment deleted successfully"}
