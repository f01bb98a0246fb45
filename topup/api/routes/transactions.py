from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from topup.api.deps import get_provider_gateway, is_number, non_string_fields, read_json
from topup.core.config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from topup.db.get_db import get_db
from topup.gateways.digiflazz import ProviderGateway
from topup.models.enums import AppRole
from topup.models.user import User
from topup.services import transaction_service
from topup.utils.auth import get_current_admin, get_current_user
from topup.utils.error_codes import ERROR_CODES
from topup.utils.helpers import error_response, pagination_info, success_response
from topup.utils.serializers import referral_to_dict, transaction_to_dict
from topup.utils.validation_functions import parse_status

router = APIRouter()


def _status_update_data(update):
    commission = update.commission
    return {
        "transaction": transaction_to_dict(update.transaction),
        "commission": None if commission is None else {
            "outcome": commission.outcome,
            "referral": referral_to_dict(commission.referral) if commission.referral else None
        }
    }


@router.post("")
async def create_transaction(
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    body = await read_json(request)
    product_id = body.get("product_id")
    amount = body.get("amount")

    if not isinstance(product_id, int) or isinstance(product_id, bool):
        return JSONResponse(
            status_code=400,
            content=error_response(ERROR_CODES["VALIDATION_ERROR"], "product_id is required and must be an integer")
        )
    if amount is not None and not is_number(amount):
        return JSONResponse(
            status_code=400,
            content=error_response(ERROR_CODES["VALIDATION_ERROR"], "amount must be a number")
        )
    text_fields = {k: body.get(k) for k in ("customer_phone", "customer_id", "customer_name", "notes")}
    not_strings = non_string_fields(text_fields)
    if not_strings:
        return JSONResponse(
            status_code=400,
            content=error_response(
                ERROR_CODES["VALIDATION_ERROR"],
                f"Fields must be strings: {', '.join(not_strings)}",
                {"fields": not_strings}
            )
        )

    transaction = transaction_service.create_transaction(
        db,
        user_id=current_user.id,
        product_id=product_id,
        amount=amount,
        **text_fields
    )
    return JSONResponse(
        status_code=201,
        content=success_response(data=transaction_to_dict(transaction), message="Transaction created successfully")
    )


@router.post("/callback")
async def transaction_callback(request: Request, db: Session = Depends(get_db)):
    """Provider status callback, keyed by the public transaction_id."""
    body = await read_json(request)
    transaction_id = body.get("transaction_id")
    status = body.get("status")

    if non_string_fields({"transaction_id": transaction_id, "status": status}) or not transaction_id or not status:
        return JSONResponse(
            status_code=400,
            content=error_response(ERROR_CODES["VALIDATION_ERROR"], "transaction_id and status are required strings")
        )
    try:
        status_enum = parse_status(status)
    except ValueError as e:
        return JSONResponse(status_code=400, content=error_response(ERROR_CODES["VALIDATION_ERROR"], str(e)))

    provider_response = body.get("provider_response")
    if provider_response is not None and not isinstance(provider_response, dict):
        return JSONResponse(
            status_code=400,
            content=error_response(ERROR_CODES["VALIDATION_ERROR"], "provider_response must be an object")
        )

    update = transaction_service.update_transaction_status(
        db,
        transaction_id,
        status_enum,
        external_transaction_id=body.get("external_transaction_id"),
        provider_response=provider_response
    )
    # Unknown ids are acknowledged so the provider stops retrying
    if update is None:
        return success_response(data=None, message="Transaction not found")
    return success_response(data=_status_update_data(update), message="Transaction status updated")


@router.get("/me")
def my_transactions(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    result = transaction_service.get_user_transactions(db, current_user.id, page, limit)
    return success_response(
        data=[transaction_to_dict(t) for t in result.items],
        pagination=pagination_info(page, limit, result.total)
    )


@router.get("/{id}")
def get_transaction(
    id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    transaction = transaction_service.get_transaction_by_id(db, id)
    if not transaction:
        return JSONResponse(status_code=404, content=error_response(ERROR_CODES["NOT_FOUND"], "Transaction not found"))
    if transaction.user_id != current_user.id and current_user.role != AppRole.admin:
        raise HTTPException(status_code=403, detail="You do not have access to this transaction")
    return success_response(data=transaction_to_dict(transaction))


@router.post("/{transaction_id}/submit")
def submit_transaction(
    transaction_id: str,
    db: Session = Depends(get_db),
    gateway: ProviderGateway = Depends(get_provider_gateway),
    current_user: User = Depends(get_current_user)
):
    transaction = transaction_service.get_transaction_by_public_id(db, transaction_id)
    if transaction is None:
        return JSONResponse(status_code=404, content=error_response(ERROR_CODES["NOT_FOUND"], "Transaction not found"))
    if transaction.user_id != current_user.id:
        raise HTTPException(status_code=403, detail="You do not have access to this transaction")

    update = transaction_service.submit_transaction(db, gateway, transaction_id)
    return success_response(data=_status_update_data(update), message="Order placed with provider")


@router.post("/{transaction_id}/check-status")
def check_transaction_status(
    transaction_id: str,
    db: Session = Depends(get_db),
    gateway: ProviderGateway = Depends(get_provider_gateway),
    admin: User = Depends(get_current_admin)
):
    update = transaction_service.refresh_transaction_status(db, gateway, transaction_id)
    return success_response(data=_status_update_data(update), message="Transaction status refreshed")
