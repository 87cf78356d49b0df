from fastapi import APIRouter, Depends, Query, Request, status

from app.sarisuki.backend.documents import DocumentStore
from app.sarisuki.core.deps import get_admin_workspace, get_documents
from app.sarisuki.schemas.products import (
    ProductDeleteResponse,
    ProductDraft,
    ProductListResponse,
    ProductResponse,
)
from app.sarisuki.services.workspaces import Workspace

router = APIRouter()


def _bound_catalog(workspace: Workspace, documents: DocumentStore):
    workspace.catalog.bind(workspace.store_id, documents)
    return workspace.catalog


@router.get("/admin/products", response_model=ProductListResponse)
def list_products(
    request: Request,
    search: str | None = Query(default=None),
    workspace: Workspace = Depends(get_admin_workspace),
    documents: DocumentStore = Depends(get_documents),
):
    catalog = _bound_catalog(workspace, documents)
    rows = catalog.filter(search)
    return ProductListResponse(
        rows=rows,
        total=len(rows),
        loading=catalog.loading,
        notice=catalog.notice.message if catalog.notice else None,
        trace_id=getattr(request.state, "trace_id", ""),
    )


@router.post("/admin/products", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
def create_product(
    request: Request,
    payload: ProductDraft,
    workspace: Workspace = Depends(get_admin_workspace),
    documents: DocumentStore = Depends(get_documents),
):
    product = _bound_catalog(workspace, documents).create(documents, payload)
    return ProductResponse(
        product=product,
        message="Product added successfully.",
        trace_id=getattr(request.state, "trace_id", ""),
    )


@router.put("/admin/products/{product_id}", response_model=ProductResponse)
def update_product(
    request: Request,
    product_id: str,
    payload: ProductDraft,
    workspace: Workspace = Depends(get_admin_workspace),
    documents: DocumentStore = Depends(get_documents),
):
    product = _bound_catalog(workspace, documents).update(documents, product_id, payload)
    return ProductResponse(
        product=product,
        message="Product updated successfully.",
        trace_id=getattr(request.state, "trace_id", ""),
    )


@router.delete("/admin/products/{product_id}", response_model=ProductDeleteResponse)
def delete_product(
    request: Request,
    product_id: str,
    workspace: Workspace = Depends(get_admin_workspace),
    documents: DocumentStore = Depends(get_documents),
):
    _bound_catalog(workspace, documents).delete(documents, product_id)
    return ProductDeleteResponse(
        ok=True,
        message="Product deleted successfully.",
        trace_id=getattr(request.state, "trace_id", ""),
    )
