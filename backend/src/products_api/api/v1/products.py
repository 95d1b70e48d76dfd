"""Product management API endpoints."""

import logging

from fastapi import APIRouter, HTTPException, Response, status

from products_api.api.deps import ProductServiceDep
from products_api.schemas.product import ProductCreate, ProductResponse, ValidationErrorResponse
from products_api.services.exceptions import UnexpectedFailure, ValidationFailed

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    responses={status.HTTP_400_BAD_REQUEST: {"model": ValidationErrorResponse}},
)
async def create_product(
    product_data: ProductCreate,
    response: Response,
    service: ProductServiceDep,
):
    """Create a new product."""
    try:
        created = await service.create(product_data)
    except ValidationFailed as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "code": "VALIDATION_FAILED",
                "errors": [{"field": err.field, "message": err.message} for err in e.errors],
            },
        )
    except UnexpectedFailure as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"code": "INTERNAL_ERROR", "message": str(e)},
        )

    response.headers["Location"] = created.location
    return created.product
