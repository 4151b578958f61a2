# supplyshop/api/routers/catalog.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from supplyshop.data.database import get_db
from supplyshop.domain.schemas import CategoryNode, CategoryOut, ProductOut
from supplyshop.services.catalog_service import CatalogService

router = APIRouter(tags=["catalog"])


@router.get("/categories", response_model=List[CategoryOut])
def list_categories(db: Session = Depends(get_db)):
    return CatalogService(db).list_categories()


@router.get("/categories/tree", response_model=List[CategoryNode])
def category_tree(db: Session = Depends(get_db)):
    return CatalogService(db).category_tree()


@router.get("/products", response_model=List[ProductOut])
def list_products(
    category: Optional[str] = Query(None, description="category id, 'uncategorized' or 'all'"),
    db: Session = Depends(get_db),
):
    return CatalogService(db).list_products(category)
