"""
Service payment API endpoints.
Read-only views over payments generated by the auto-billing run.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from autobilling.db.session import get_db
from autobilling.controllers.service_payment_controller import ServicePaymentController
from autobilling.models.service_payment import PaymentStatus
from autobilling.schemas.service_payment import (
    PaymentDetailResponse,
    PaymentListResponse,
    PaymentSummaryResponse,
    PaymentIntegrityResponse,
)

router = APIRouter()


@router.get("/payments", response_model=PaymentListResponse)
async def list_payments(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    service_id: Optional[int] = Query(None),
    stakeholder_id: Optional[int] = Query(None),
    payment_status: Optional[PaymentStatus] = Query(None, alias="status"),
    db: AsyncSession = Depends(get_db),
) -> PaymentListResponse:
    """List service payments."""
    controller = ServicePaymentController(db)
    return await controller.list_payments(
        skip=skip,
        limit=limit,
        service_id=service_id,
        stakeholder_id=stakeholder_id,
        status=payment_status,
    )


@router.get("/payments/summary", response_model=PaymentSummaryResponse)
async def get_payment_summary(
    service_id: Optional[int] = Query(None),
    stakeholder_id: Optional[int] = Query(None),
    db: AsyncSession = Depends(get_db),
) -> PaymentSummaryResponse:
    """Get total, paid and pending payment amounts."""
    controller = ServicePaymentController(db)
    return await controller.get_payment_summary(
        service_id=service_id,
        stakeholder_id=stakeholder_id,
    )


@router.get("/payments/{payment_id}", response_model=PaymentDetailResponse)
async def get_payment(
    payment_id: int,
    db: AsyncSession = Depends(get_db),
) -> PaymentDetailResponse:
    """Get payment by ID, including its line items."""
    controller = ServicePaymentController(db)
    payment = await controller.get_payment(payment_id)
    if not payment:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Payment not found",
        )
    return payment


@router.get("/integrity", response_model=PaymentIntegrityResponse)
async def check_payment_integrity(
    limit: int = Query(100, ge=1, le=1000),
    db: AsyncSession = Depends(get_db),
) -> PaymentIntegrityResponse:
    """List payments stored without line items."""
    controller = ServicePaymentController(db)
    return await controller.check_integrity(limit=limit)
