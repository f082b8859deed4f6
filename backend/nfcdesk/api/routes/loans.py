"""Loan Routes - desk reservations outside the tap flow and the active-loan board.

Invariants:
    - 409 RESOURCE_UNAVAILABLE on a loaned/maintenance resource
    - 409 NO_ACTIVE_LOAN on release without an active loan
"""

from fastapi import APIRouter, Depends, status

from nfcdesk.api.dependencies import get_engine
from nfcdesk.schemas.loan import (
    ActiveLoanResponse, LoanRequest, LoanResponse, ReleaseRequest,
)
from nfcdesk.services.access_engine import AccessEngine

router = APIRouter(prefix="/api/v1/loans", tags=["loans"])


@router.post("", response_model=LoanResponse, status_code=status.HTTP_201_CREATED)
async def create_loan(body: LoanRequest, engine: AccessEngine = Depends(get_engine)):
    loan = await engine.reserve(
        body.resource_kind, body.resource_id, body.borrower_id,
        loan_days=body.loan_days, operator=body.operator,
    )
    return LoanResponse.model_validate(loan)


@router.post("/release", response_model=LoanResponse)
async def release_loan(
    body: ReleaseRequest, engine: AccessEngine = Depends(get_engine),
):
    loan = await engine.release(body.resource_kind, body.resource_id)
    return LoanResponse.model_validate(loan)


@router.get("/active", response_model=list[ActiveLoanResponse])
async def active_loans(engine: AccessEngine = Depends(get_engine)):
    """Active loans, soonest due first."""
    views = await engine.active_loans()
    return [
        ActiveLoanResponse(
            **LoanResponse.model_validate(v.loan).model_dump(),
            borrower_name=v.loan.borrower.full_name,
            resource_label=v.resource_label,
            days_remaining=v.days_remaining,
        )
        for v in views
    ]
