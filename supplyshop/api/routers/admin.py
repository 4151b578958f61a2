# supplyshop/api/routers/admin.py
from typing import List

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.orm import Session

from supplyshop.api.deps import get_storage_client, require_admin
from supplyshop.data.database import get_db
from supplyshop.domain.schemas import (
    AdminOrderOut,
    AdminProductOut,
    CategoryIn,
    CategoryOut,
    ImageUploadOut,
    ProductIn,
    ProductOut,
    ProfileOut,
    RoleIn,
    SupplierIn,
    SupplierOut,
)
from supplyshop.domain.session import SessionContext
from supplyshop.services.catalog_service import CatalogService
from supplyshop.services.order_service import OrderService
from supplyshop.services.profile_service import ProfileService
from supplyshop.services.storage_client import StorageClient

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])

SECTIONS = [
    {"title": "ניהול מוצרים", "description": "הוספה, עריכה וניהול מלאי המוצרים.", "link": "/admin/products"},
    {"title": "ניהול ספקים", "description": "עדכון ותחזוקת פרטי ספקים.", "link": "/admin/suppliers"},
    {"title": "ניהול קטגוריות", "description": "סידור מוצרים לפי קטגוריות.", "link": "/admin/categories"},
    {"title": "ניהול הזמנות", "description": "צפייה וניהול כל ההזמנות במערכת.", "link": "/admin/orders"},
    {"title": "ניהול משתמשים", "description": "ניהול הרשאות ופרטי משתמשים.", "link": "/admin/users"},
]


@router.get("")
def dashboard():
    return {"sections": SECTIONS}


# ---------------------------------------------------------------- products
@router.get("/products", response_model=List[AdminProductOut])
def list_products(db: Session = Depends(get_db)):
    return CatalogService(db).admin_list_products()


@router.post("/products", response_model=ProductOut, status_code=201)
def create_product(payload: ProductIn, db: Session = Depends(get_db)):
    return CatalogService(db).create_product(payload)


@router.put("/products/{product_id}", response_model=ProductOut)
def update_product(product_id: str, payload: ProductIn, db: Session = Depends(get_db)):
    return CatalogService(db).update_product(product_id, payload)


@router.delete("/products/{product_id}")
def delete_product(product_id: str, db: Session = Depends(get_db)):
    CatalogService(db).delete_product(product_id)
    return {"ok": True}


@router.post("/uploads/product-image", response_model=ImageUploadOut, status_code=201)
def upload_product_image(
    file: UploadFile = File(...),
    session: SessionContext = Depends(require_admin),
    storage: StorageClient = Depends(get_storage_client),
):
    data = file.file.read()
    url = storage.upload_image(file.filename, data, file.content_type, session.access_token)
    return {"url": url}


# ---------------------------------------------------------------- suppliers
@router.get("/suppliers", response_model=List[SupplierOut])
def list_suppliers(db: Session = Depends(get_db)):
    return CatalogService(db).list_suppliers()


@router.post("/suppliers", response_model=SupplierOut, status_code=201)
def create_supplier(payload: SupplierIn, db: Session = Depends(get_db)):
    return CatalogService(db).create_supplier(payload)


@router.put("/suppliers/{supplier_id}", response_model=SupplierOut)
def update_supplier(supplier_id: str, payload: SupplierIn, db: Session = Depends(get_db)):
    return CatalogService(db).update_supplier(supplier_id, payload)


@router.delete("/suppliers/{supplier_id}")
def delete_supplier(supplier_id: str, db: Session = Depends(get_db)):
    CatalogService(db).delete_supplier(supplier_id)
    return {"ok": True}


# ---------------------------------------------------------------- categories
@router.get("/categories", response_model=List[CategoryOut])
def list_categories(db: Session = Depends(get_db)):
    return CatalogService(db).list_categories()


@router.post("/categories", response_model=CategoryOut, status_code=201)
def create_category(payload: CategoryIn, db: Session = Depends(get_db)):
    return CatalogService(db).create_category(payload)


@router.put("/categories/{category_id}", response_model=CategoryOut)
def update_category(category_id: str, payload: CategoryIn, db: Session = Depends(get_db)):
    return CatalogService(db).update_category(category_id, payload)


@router.delete("/categories/{category_id}")
def delete_category(category_id: str, db: Session = Depends(get_db)):
    CatalogService(db).delete_category(category_id)
    return {"ok": True}


# ---------------------------------------------------------------- orders / users
@router.get("/orders", response_model=List[AdminOrderOut])
def list_orders(db: Session = Depends(get_db)):
    return OrderService(db).list_all_orders()


@router.get("/users", response_model=List[ProfileOut])
def list_users(db: Session = Depends(get_db)):
    return ProfileService(db).list_profiles()


@router.put("/users/{user_id}/role", response_model=ProfileOut)
def set_user_role(user_id: str, payload: RoleIn, db: Session = Depends(get_db)):
    return ProfileService(db).set_role(user_id, payload.role)


@router.delete("/users/{user_id}")
def delete_user(user_id: str, db: Session = Depends(get_db)):
    ProfileService(db).delete_profile(user_id)
    return {"ok": True}
