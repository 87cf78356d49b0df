from fastapi import APIRouter, Depends, Query, Request

from app.sarisuki.backend.documents import DocumentStore
from app.sarisuki.core.deps import get_documents, get_staff_workspace, require_staff
from app.sarisuki.core.error_catalog import AppError, ErrorCatalog
from app.sarisuki.schemas.sales import (
    AddToCartRequest,
    CartMutationResponse,
    RecordSaleResponse,
    RecordSaleView,
    UpdateQuantityRequest,
)
from app.sarisuki.services.session import SessionManager
from app.sarisuki.services.workspaces import Workspace

router = APIRouter(prefix="/staff/record-sale")


def _cart_response(request: Request, workspace: Workspace) -> CartMutationResponse:
    return CartMutationResponse(
        cart=workspace.cart.to_response(is_submitting=workspace.recorder.is_submitting),
        trace_id=getattr(request.state, "trace_id", ""),
    )


@router.get("", response_model=RecordSaleView)
def record_sale_view(
    request: Request,
    search: str | None = Query(default=None),
    workspace: Workspace = Depends(get_staff_workspace),
    documents: DocumentStore = Depends(get_documents),
):
    catalog = workspace.catalog
    catalog.bind(workspace.store_id, documents)
    return RecordSaleView(
        products=catalog.filter(search),
        loading=catalog.loading,
        notice=catalog.notice.message if catalog.notice else None,
        cart=workspace.cart.to_response(is_submitting=workspace.recorder.is_submitting),
        trace_id=getattr(request.state, "trace_id", ""),
    )


@router.post("/cart", response_model=CartMutationResponse)
def add_to_cart(
    request: Request,
    payload: AddToCartRequest,
    workspace: Workspace = Depends(get_staff_workspace),
    documents: DocumentStore = Depends(get_documents),
):
    workspace.catalog.bind(workspace.store_id, documents)
    product = workspace.catalog.get(payload.product_id)
    if product is None:
        raise AppError(ErrorCatalog.PRODUCT_NOT_FOUND, details={"product_id": payload.product_id})
    workspace.cart.add(product)
    return _cart_response(request, workspace)


@router.put("/cart/{product_id}", response_model=CartMutationResponse)
def update_cart_quantity(
    request: Request,
    product_id: str,
    payload: UpdateQuantityRequest,
    workspace: Workspace = Depends(get_staff_workspace),
):
    if workspace.cart.get(product_id) is None:
        raise AppError(ErrorCatalog.CART_ITEM_NOT_FOUND, details={"product_id": product_id})
    workspace.cart.update_quantity(product_id, payload.quantity)
    return _cart_response(request, workspace)


@router.delete("/cart/{product_id}", response_model=CartMutationResponse)
def remove_from_cart(
    request: Request,
    product_id: str,
    workspace: Workspace = Depends(get_staff_workspace),
):
    workspace.cart.remove(product_id)
    return _cart_response(request, workspace)


@router.post("/submit", response_model=RecordSaleResponse)
def submit_sale(
    request: Request,
    session: SessionManager = Depends(require_staff),
    workspace: Workspace = Depends(get_staff_workspace),
    documents: DocumentStore = Depends(get_documents),
):
    sale = workspace.recorder.record(documents, session.profile)
    return RecordSaleResponse(
        sale=sale,
        cart=workspace.cart.to_response(is_submitting=workspace.recorder.is_submitting),
        message="Sale recorded successfully.",
        trace_id=getattr(request.state, "trace_id", ""),
    )
