from __future__ import annotations

from fastapi import APIRouter, Depends

from orderflow.api.schemas import SubtotalQuoteRequest
from orderflow.api.utils import client_to_dict
from orderflow.core.config import get_settings
from orderflow.core.security import get_access
from orderflow.domain.access.roles import RoleDecision
from orderflow.domain.pricing.discount import DISCOUNT_TIERS, compute_discount
from orderflow.domain.pricing.money import format_money

router = APIRouter(tags=["session"])


@router.get("/session")
def get_session_role(access: RoleDecision = Depends(get_access)):
    return {
        "role": access.role,
        "email": access.email,
        "client": client_to_dict(access.client) if access.client is not None else None,
    }


@router.get("/pricing/tiers")
def get_discount_tiers():
    return {
        "currency": get_settings().currency_label,
        "tiers": [
            {"from": format_money(lower_bound), "discount_percentage": percentage}
            for lower_bound, percentage in DISCOUNT_TIERS
        ],
    }


@router.post("/pricing/quote")
def quote_subtotal(request: SubtotalQuoteRequest):
    return compute_discount(request.subtotal, currency=get_settings().currency_label).to_dict()
