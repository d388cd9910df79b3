from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from textile_backend.core.deps import require_permission
from textile_backend.db.session import get_db
from textile_backend.models.customer import Customer
from textile_backend.models.user import User
from textile_backend.schemas.admin import DeactivationOut
from textile_backend.services.deactivation import DeactivationRestriction, assert_can_deactivate

router = APIRouter()

CUSTOMER_DEACTIVATION_RESTRICTIONS = [
    DeactivationRestriction(
        relation="quotations",
        message="El cliente tiene cotizaciones en curso",
        condition={"is_active": True, "status": {"in": ["DRAFT", "SENT", "APPROVED"]}},
    ),
    DeactivationRestriction(
        relation="contacts",
        message="El cliente tiene contactos activos",
    ),
]


@router.post("/{customer_id}/deactivate", response_model=DeactivationOut)
def deactivate_customer(
    customer_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("customer", "deactivate")),
):
    customer = db.get(Customer, customer_id)
    if customer is None:
        raise HTTPException(status_code=404, detail="Cliente no encontrado")
    if customer.is_active:
        assert_can_deactivate(db, Customer, customer.id, CUSTOMER_DEACTIVATION_RESTRICTIONS)
        customer.is_active = False
        db.commit()
    return DeactivationOut(id=customer.id, is_active=customer.is_active)
