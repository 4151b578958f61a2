# supplyshop/repos/catalog_repo.py
from typing import Iterable, List

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from supplyshop.data.models.category import CategoryModel
from supplyshop.data.models.product import ProductModel
from supplyshop.data.models.supplier import SupplierModel


class CatalogRepo:
    """Products, categories and suppliers - shared reference data."""

    def __init__(self, db: Session):
        self.db = db

    # products
    def list_products(self, category_id: str | None = None, uncategorized: bool = False) -> List[ProductModel]:
        stmt = select(ProductModel)
        if uncategorized:
            stmt = stmt.where(ProductModel.category_id.is_(None))
        elif category_id:
            stmt = stmt.where(ProductModel.category_id == category_id)
        stmt = stmt.order_by(ProductModel.created_at.desc(), ProductModel.name)
        return list(self.db.execute(stmt).scalars())

    def get_product(self, product_id: str) -> ProductModel | None:
        return self.db.get(ProductModel, product_id)

    def get_products(self, product_ids: Iterable[str]) -> List[ProductModel]:
        ids = list(set(product_ids))
        if not ids:
            return []
        return list(
            self.db.execute(select(ProductModel).where(ProductModel.id.in_(ids))).scalars()
        )

    # categories
    def list_categories(self) -> List[CategoryModel]:
        return list(self.db.execute(select(CategoryModel).order_by(CategoryModel.name)).scalars())

    def get_category(self, category_id: str) -> CategoryModel | None:
        return self.db.get(CategoryModel, category_id)

    # suppliers
    def list_suppliers(self) -> List[SupplierModel]:
        return list(self.db.execute(select(SupplierModel).order_by(SupplierModel.name)).scalars())

    def get_supplier(self, supplier_id: str) -> SupplierModel | None:
        return self.db.get(SupplierModel, supplier_id)

    def get_suppliers(self, supplier_ids: Iterable[str]) -> List[SupplierModel]:
        ids = list(set(supplier_ids))
        if not ids:
            return []
        return list(
            self.db.execute(select(SupplierModel).where(SupplierModel.id.in_(ids))).scalars()
        )

    # shared
    def add(self, row):
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        return row

    def save(self, row):
        self.db.commit()
        self.db.refresh(row)
        return row

    def delete_by_id(self, model, row_id: str) -> int:
        # core DELETE: the ORM would otherwise null out child foreign keys
        # instead of letting the store reject the delete
        result = self.db.execute(
            delete(model).where(model.id == row_id).execution_options(synchronize_session=False)
        )
        self.db.commit()
        return result.rowcount

    def rollback(self):
        self.db.rollback()
