from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query
from sqlalchemy.orm import Session

from perfumaria.api.deps import DBSession, handle_errors
from perfumaria.infra.models import ProductORM
from perfumaria.schemas.products import (
    ProductCreate,
    ProductOut,
    ProductsSummaryOut,
    ProductUpdate,
)
from perfumaria.services.catalog_service import list_products, products_summary
from perfumaria.services.money import quantize_money

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_or_404(db: Session, product_id: int) -> ProductORM:
    product = db.get(ProductORM, product_id)
    if not product or not product.is_active:
        raise HTTPException(status_code=404, detail="Produto não encontrado.")
    return product


@router.post("", response_model=ProductOut, status_code=201)
def create_product(payload: ProductCreate, db: Session = DBSession):
    with handle_errors("salvar produto", logger):
        product = ProductORM(
            name=payload.name.strip(),
            brand=payload.brand.strip(),
            size=payload.size.strip(),
            purchase_price=quantize_money(payload.purchase_price),
            sale_price=quantize_money(payload.sale_price),
            stock_quantity=payload.stock_quantity,
            is_active=True,
        )
        db.add(product)
        db.flush()
    return product


@router.get("", response_model=dict)
def list_products_endpoint(
    db: Session = DBSession,
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=200),
    search: Optional[str] = Query(None, description="nome ou marca"),
    stock: str = Query("all", description="all|in_stock|low_stock|out_of_stock"),
    sort_by: str = Query("name", description="name|brand|stock|sale_price"),
):
    with handle_errors("carregar produtos", logger):
        items, total = list_products(
            db,
            page=page,
            page_size=page_size,
            search=search,
            stock_filter=stock,
            sort_by=sort_by,
        )

    return {
        "items": [ProductOut.model_validate(p) for p in items],
        "total": total,
        "page": page,
        "page_size": page_size,
    }


@router.get("/summary", response_model=ProductsSummaryOut)
def products_summary_endpoint(db: Session = DBSession):
    with handle_errors("carregar produtos", logger):
        summary = products_summary(db)
    return ProductsSummaryOut.model_validate(summary)


@router.get("/{product_id}", response_model=ProductOut)
def get_product(product_id: int, db: Session = DBSession):
    return _get_or_404(db, product_id)


@router.put("/{product_id}", response_model=ProductOut)
def update_product(product_id: int, payload: ProductUpdate, db: Session = DBSession):
    product = _get_or_404(db, product_id)

    with handle_errors("salvar produto", logger):
        if payload.name is not None:
            product.name = payload.name.strip()
        if payload.brand is not None:
            product.brand = payload.brand.strip()
        if payload.size is not None:
            product.size = payload.size.strip()
        if payload.purchase_price is not None:
            product.purchase_price = quantize_money(payload.purchase_price)
        if payload.sale_price is not None:
            product.sale_price = quantize_money(payload.sale_price)
        if payload.stock_quantity is not None:
            product.stock_quantity = payload.stock_quantity
        db.flush()
    return product


@router.delete("/{product_id}", status_code=204)
def deactivate_product(product_id: int, db: Session = DBSession):
    # exclusão lógica: vendas antigas continuam apontando para o produto
    product = _get_or_404(db, product_id)
    with handle_errors("desativar produto", logger):
        product.is_active = False
        db.flush()
