"""
Seed a fresh database with a small demo catalog.

Run from the backend folder: ``python populate_db.py``. Existing data is left
alone; the script only seeds an empty catalog.
"""
import logging

from database import SessionLocal, init_db
from models.category import Category
from models.product import Product
from models.supplier import Supplier
from services import catalog

logger = logging.getLogger(__name__)

CATEGORIES = [
    ("Electronics", "Electronic devices and components"),
    ("Clothing", "Apparel and accessories"),
    ("Home & Garden", "Home improvement and garden supplies"),
    ("Books", "Books and publications"),
    ("Sports", "Sports equipment and gear"),
]

SUPPLIERS = [
    {"name": "Tech Supplies Inc.", "company_name": "Tech Supplies Inc.", "contact_person": "John Smith",
     "phone": "555-0101", "email": "john@techsupplies.com", "address": "123 Tech Street, City"},
    {"name": "Fashion Source Ltd.", "company_name": "Fashion Source Ltd.", "contact_person": "Sarah Johnson",
     "phone": "555-0102", "email": "sarah@fashionsource.com", "address": "456 Fashion Ave, City"},
]

# (name, sku, description, category, supplier, buying, selling, stock, minimum, reorder)
PRODUCTS = [
    ("Wireless Mouse", "ELEC-001", "Ergonomic wireless mouse with USB receiver", "Electronics", "Tech Supplies Inc.",
     15.99, 29.99, 50, 10, 20),
    ("T-Shirt (Medium)", "CLOTH-001", "Cotton t-shirt, various colors", "Clothing", "Fashion Source Ltd.",
     8.50, 19.99, 100, 20, 40),
]


def seed(db) -> bool:
    """Insert the demo catalog; returns False when the catalog is not empty."""
    if db.query(Category).count():
        logger.info("Catalog already populated, nothing to seed.")
        return False

    categories = {
        name: catalog.create_entry(db, Category, name=name, description=description)
        for name, description in CATEGORIES
    }
    suppliers = {s["name"]: catalog.create_entry(db, Supplier, **s) for s in SUPPLIERS}

    for name, sku, description, category, supplier, buying, selling, stock, minimum, reorder in PRODUCTS:
        catalog.create_product(
            db,
            name=name,
            sku=sku,
            description=description,
            category_id=categories[category].id,
            supplier_id=suppliers[supplier].id,
            buying_price=buying,
            selling_price=selling,
            stock_quantity=stock,
            minimum_stock_level=minimum,
            reorder_level=reorder,
        )

    logger.info("Seeded %s categories, %s suppliers, %s products.",
                len(categories), len(suppliers), db.query(Product).count())
    return True


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    init_db()
    session = SessionLocal()
    try:
        seed(session)
    finally:
        session.close()
