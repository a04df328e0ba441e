from typing import Any, Dict, List, Mapping

from sqlalchemy import Select, or_, select
from sqlalchemy.orm import joinedload

from ..db import Category, Product, session_scope
from .base import Field, Table, status_options

STATUS_LABELS = {
    Product.STATUS_DRAFT: "Draft",
    Product.STATUS_ACTIVE: "Active",
    Product.STATUS_SOLD: "Sold",
    Product.STATUS_IN_REPAIR: "In Repair",
    Product.STATUS_IN_MEMO: "In Memo",
    Product.STATUS_ARCHIVE: "Archived",
}


class ProductsTable(Table):
    title = "Products"
    component = "DataTable"
    model = Product
    has_checkbox = True
    is_searchable = True
    no_data_message = "No products found. Create your first product to get started."

    def fields(self) -> List[Field]:
        return [
            {"key": "sku", "label": "SKU", "sortable": True},
            {"key": "title", "label": "Product Title", "sortable": True, "width": "12rem"},
            "category",
            {"key": "price", "label": "Price", "sortable": True},
            {"key": "quantity", "label": "Qty", "sortable": True},
            {"key": "status", "label": "Status", "sortable": True},
            {"key": "created_at", "label": "Created", "sortable": True},
        ]

    def query(self, filter: Mapping[str, Any]) -> Select:
        stmt = (
            select(Product)
            .options(joinedload(Product.category))
            .where(Product.store_id == self.store_id(filter))
        )

        term = filter.get("term")
        if term:
            pattern = f"%{term}%"
            stmt = stmt.where(or_(
                Product.title.ilike(pattern),
                Product.sku.ilike(pattern),
                Product.description.ilike(pattern),
            ))

        status = filter.get("status")
        if status:
            stmt = stmt.where(Product.status == status)

        category_id = filter.get("category_id")
        if category_id:
            stmt = stmt.where(Product.category_id == int(category_id))

        return stmt

    def row(self, product: Product) -> Dict[str, Any]:
        return {
            "id": {"data": product.id},
            "sku": {"data": product.sku or "-"},
            "title": {"type": "link", "href": f"/products/{product.id}", "data": product.title},
            "category": {"data": product.category.name if product.category else None},
            "price": {"type": "currency", "data": product.price or 0, "currency": "USD"},
            "quantity": {"data": product.quantity},
            "status": {"type": "badge", "data": STATUS_LABELS.get(product.status, product.status)},
            "created_at": {"data": product.created_at.strftime("%b %d, %Y") if product.created_at else None},
        }

    def table_filter(self, filter: Mapping[str, Any]) -> Dict[str, Any]:
        with session_scope(self.session_factory) as session:
            categories = session.execute(
                select(Category.id, Category.name)
                .where(Category.store_id == self.store_id(filter))
                .order_by(Category.name)
            ).all()
        return {
            "statuses": status_options(STATUS_LABELS, list(STATUS_LABELS)),
            "categories": [{"value": c.id, "label": c.name} for c in categories],
        }
