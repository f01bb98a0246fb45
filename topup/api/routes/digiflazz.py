from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from topup.api.deps import get_provider_gateway
from topup.db.get_db import get_db
from topup.gateways.digiflazz import ProviderGateway, classify
from topup.models.user import User
from topup.services import catalog_service, transaction_service
from topup.utils.auth import get_current_admin
from topup.utils.helpers import success_response

router = APIRouter()


@router.get("/services")
def services(gateway: ProviderGateway = Depends(get_provider_gateway), admin: User = Depends(get_current_admin)):
    return success_response(data=[s.model_dump() for s in gateway.get_services()])


@router.post("/sync")
def sync_products(
    db: Session = Depends(get_db),
    gateway: ProviderGateway = Depends(get_provider_gateway),
    admin: User = Depends(get_current_admin)
):
    result = catalog_service.sync_catalog(db, gateway)
    return success_response(data=result, message=f"Synced {result['synced']} products")


@router.get("/status/{ref_id}")
def provider_status(
    ref_id: str,
    db: Session = Depends(get_db),
    gateway: ProviderGateway = Depends(get_provider_gateway),
    admin: User = Depends(get_current_admin)
):
    """Ask the provider about a submitted order; ref_id is our transaction_id."""
    reply = transaction_service.get_provider_status(db, gateway, ref_id)
    return success_response(data={
        "outcome": classify(reply.data).value,
        "response": reply.model_dump()
    })
