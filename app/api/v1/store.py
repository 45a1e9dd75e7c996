"""Store endpoints: products, purchases, access requests and reviews."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from app.crud.products import ProductCRUD
from app.dependencies import get_current_profile, get_db_client
from app.schemas import AccessRequest, ApiResponse, ReviewRequest
from app.utils.logger import get_logger

logger = get_logger(__name__)
router = APIRouter()


@router.get("/products", response_model=ApiResponse)
async def list_products(
    category: Optional[str] = Query(None),
    profile: dict = Depends(get_current_profile),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    """Available products, featured first."""
    return ApiResponse.ok(ProductCRUD(db_client).list_products(category=category))


@router.get("/products/{product_id}", response_model=ApiResponse)
async def get_product(
    product_id: str,
    profile: dict = Depends(get_current_profile),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    """A product with its rating summary and whether the caller owns it."""
    products = ProductCRUD(db_client)
    product = products.get_product(product_id)
    product["rating"] = products.rating_summary(product_id)
    product["purchased"] = products.has_purchased(profile["uid"], product_id)
    return ApiResponse.ok(product)


@router.post("/products/{product_id}/purchase", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def purchase_product(
    product_id: str,
    profile: dict = Depends(get_current_profile),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    """
    Buy a product with points.

    Raises:
        InsufficientPointsError: 402 when the caller cannot afford it
        AuthorizationError: 403 when the caller's rank is too low
        ValidationError: 422 when the product is unavailable or sold out
    """
    result = ProductCRUD(db_client).purchase(profile["uid"], product_id)
    return ApiResponse.ok(result, message="Purchase successful")


@router.get("/purchases", response_model=ApiResponse)
async def my_purchases(
    profile: dict = Depends(get_current_profile),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    return ApiResponse.ok(ProductCRUD(db_client).list_purchases(profile["uid"]))


@router.post("/purchases/{purchase_id}/access-request", response_model=ApiResponse)
async def request_access(
    purchase_id: str,
    request: AccessRequest,
    profile: dict = Depends(get_current_profile),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    """Ask an admin to deliver access to a purchased product."""
    purchase = ProductCRUD(db_client).request_access(profile["uid"], purchase_id, request.message)
    return ApiResponse.ok(purchase, message="Access requested")


@router.get("/products/{product_id}/reviews", response_model=ApiResponse)
async def list_reviews(
    product_id: str,
    profile: dict = Depends(get_current_profile),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    products = ProductCRUD(db_client)
    products.get_product(product_id)
    return ApiResponse.ok({
        "reviews": products.list_reviews(product_id),
        "rating": products.rating_summary(product_id),
    })


@router.post("/products/{product_id}/reviews", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def add_review(
    product_id: str,
    request: ReviewRequest,
    profile: dict = Depends(get_current_profile),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    review = ProductCRUD(db_client).add_review(profile, product_id, request.rating, request.comment or "")
    return ApiResponse.ok(review, message="Review added")
