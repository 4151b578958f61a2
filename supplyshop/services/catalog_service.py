# supplyshop/services/catalog_service.py
from typing import Dict, List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from supplyshop.data.models.category import CategoryModel
from supplyshop.data.models.product import ProductModel
from supplyshop.data.models.supplier import SupplierModel
from supplyshop.domain.errors import ConstraintViolation, NotFound, ValidationError
from supplyshop.domain.schemas import CategoryIn, ProductIn, SupplierIn
from supplyshop.repos.catalog_repo import CatalogRepo
from supplyshop.utils.logging import get_logger

logger = get_logger(__name__)

ROOT = "__ROOT__"
NO_CATEGORY = "—"
MAX_CATEGORY_DEPTH = 10

DELETE_BLOCKED = {
    "product": "לא ניתן למחוק מוצר שקשור להזמנות.",
    "supplier": "לא ניתן למחוק ספק שמקושר למוצרים.",
    "category": "לא ניתן למחוק קטגוריה שמקושרת למוצרים או שיש לה תתי־קטגוריות.",
}


def build_children_map(categories: List[CategoryModel]) -> Dict[str, List[CategoryModel]]:
    by_parent: Dict[str, List[CategoryModel]] = {}
    for c in categories:
        by_parent.setdefault(c.parent_id or ROOT, []).append(c)
    for children in by_parent.values():
        children.sort(key=lambda c: c.name)
    return by_parent


def category_path(category_id: str | None, categories: List[CategoryModel]) -> str:
    """'Parent > Child' names; bounded walk so a bad cycle in the data can't hang."""
    if not category_id:
        return NO_CATEGORY
    by_id = {c.id: c for c in categories}
    names = []
    cur = by_id.get(category_id)
    guard = 0
    while cur is not None and guard < MAX_CATEGORY_DEPTH:
        names.insert(0, cur.name)
        cur = by_id.get(cur.parent_id) if cur.parent_id else None
        guard += 1
    return " > ".join(names) or NO_CATEGORY


class CatalogService:
    """Storefront reads and admin CRUD for products, suppliers and categories."""

    def __init__(self, db: Session):
        self.repo = CatalogRepo(db)

    # ------------------------------------------------------------ storefront
    def list_products(self, category: str | None = None) -> List[ProductModel]:
        if not category or category == "all":
            return self.repo.list_products()
        if category == "uncategorized":
            return self.repo.list_products(uncategorized=True)
        return self.repo.list_products(category_id=category)

    def list_categories(self) -> List[CategoryModel]:
        return self.repo.list_categories()

    def category_tree(self) -> List[Dict]:
        children = build_children_map(self.repo.list_categories())

        def node(cat: CategoryModel, depth: int = 0) -> Dict:
            kids = children.get(cat.id, []) if depth < MAX_CATEGORY_DEPTH else []
            return {
                "id": cat.id,
                "name": cat.name,
                "parent_id": cat.parent_id,
                "slug": cat.slug,
                "children": [node(k, depth + 1) for k in kids],
            }

        return [node(c) for c in children.get(ROOT, [])]

    # ------------------------------------------------------------ products
    def admin_list_products(self) -> List[Dict]:
        categories = self.repo.list_categories()
        suppliers = {s.id: s.name for s in self.repo.list_suppliers()}
        return [
            {
                "id": p.id,
                "name": p.name,
                "price": p.price,
                "category_id": p.category_id,
                "supplier_id": p.supplier_id,
                "image_url": p.image_url,
                "created_at": p.created_at,
                "category_path": category_path(p.category_id, categories),
                "supplier_name": suppliers.get(p.supplier_id),
            }
            for p in self.repo.list_products()
        ]

    def _check_product_refs(self, payload: ProductIn):
        if self.repo.get_supplier(payload.supplier_id) is None:
            raise ValidationError("הספק שנבחר לא קיים")
        if payload.category_id and self.repo.get_category(payload.category_id) is None:
            raise ValidationError("הקטגוריה שנבחרה לא קיימת")

    def create_product(self, payload: ProductIn) -> ProductModel:
        self._check_product_refs(payload)
        product = self.repo.add(
            ProductModel(
                name=payload.name.strip(),
                price=payload.price,
                category_id=payload.category_id,
                supplier_id=payload.supplier_id,
                image_url=payload.image_url,
            )
        )
        logger.info(f"Product {product.id} created")
        return product

    def update_product(self, product_id: str, payload: ProductIn) -> ProductModel:
        product = self.repo.get_product(product_id)
        if not product:
            raise NotFound("המוצר לא נמצא")
        self._check_product_refs(payload)
        product.name = payload.name.strip()
        product.price = payload.price
        product.category_id = payload.category_id
        product.supplier_id = payload.supplier_id
        # keep the current image unless a new one is given
        if payload.image_url is not None:
            product.image_url = payload.image_url
        return self.repo.save(product)

    def delete_product(self, product_id: str):
        self._delete(ProductModel, product_id, "product")

    # ------------------------------------------------------------ suppliers
    def list_suppliers(self) -> List[SupplierModel]:
        return self.repo.list_suppliers()

    def create_supplier(self, payload: SupplierIn) -> SupplierModel:
        supplier = self.repo.add(SupplierModel(name=payload.name.strip(), email=payload.email))
        logger.info(f"Supplier {supplier.id} created")
        return supplier

    def update_supplier(self, supplier_id: str, payload: SupplierIn) -> SupplierModel:
        supplier = self.repo.get_supplier(supplier_id)
        if not supplier:
            raise NotFound("הספק לא נמצא")
        supplier.name = payload.name.strip()
        supplier.email = payload.email
        return self.repo.save(supplier)

    def delete_supplier(self, supplier_id: str):
        self._delete(SupplierModel, supplier_id, "supplier")

    # ------------------------------------------------------------ categories
    def _check_parent(self, category_id: str | None, parent_id: str | None):
        if not parent_id:
            return
        if parent_id == category_id:
            raise ValidationError("קטגוריה לא יכולה להיות הורה של עצמה")
        parents = {c.id: c.parent_id for c in self.repo.list_categories()}
        if parent_id not in parents:
            raise ValidationError("קטגוריית האב לא קיימת")
        # walk up from the new parent: meeting ourselves means a cycle
        cur, seen = parent_id, set()
        while cur and cur not in seen:
            if cur == category_id:
                raise ValidationError("קטגוריה לא יכולה להיות צאצא של עצמה")
            seen.add(cur)
            cur = parents.get(cur)

    def create_category(self, payload: CategoryIn) -> CategoryModel:
        self._check_parent(None, payload.parent_id)
        category = CategoryModel(name=payload.name.strip(), parent_id=payload.parent_id, slug=payload.slug)
        try:
            return self.repo.add(category)
        except IntegrityError:
            self.repo.rollback()
            raise ConstraintViolation("ה-slug כבר קיים")

    def update_category(self, category_id: str, payload: CategoryIn) -> CategoryModel:
        category = self.repo.get_category(category_id)
        if not category:
            raise NotFound("הקטגוריה לא נמצאה")
        self._check_parent(category_id, payload.parent_id)
        category.name = payload.name.strip()
        category.parent_id = payload.parent_id
        category.slug = payload.slug
        try:
            return self.repo.save(category)
        except IntegrityError:
            self.repo.rollback()
            raise ConstraintViolation("ה-slug כבר קיים")

    def delete_category(self, category_id: str):
        self._delete(CategoryModel, category_id, "category")

    # ------------------------------------------------------------ shared
    def _delete(self, model, row_id: str, kind: str):
        try:
            deleted = self.repo.delete_by_id(model, row_id)
        except IntegrityError as e:
            self.repo.rollback()
            logger.info(f"Delete of {kind} {row_id} blocked by foreign key: {e.orig}")
            raise ConstraintViolation(DELETE_BLOCKED[kind])
        if not deleted:
            raise NotFound()
        logger.info(f"{kind.capitalize()} {row_id} deleted")
