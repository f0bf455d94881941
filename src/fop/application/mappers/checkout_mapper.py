from __future__ import annotations

from fop.application.dto.requests import CardDetailsRequest, DeliveryDetailsRequest
from fop.application.errors import ValidationError
from fop.domain.order.entities import CardDetails, DeliveryDetails, PaymentMethod


def to_delivery_details(request: DeliveryDetailsRequest) -> DeliveryDetails:
    try:
        return DeliveryDetails(
            first_name=request.first_name.strip(),
            last_name=request.last_name.strip(),
            phone=request.phone.strip(),
            email=request.email.strip(),
            address=request.address.strip(),
            city=request.city.strip(),
            state=request.state.strip(),
            zip_code=request.zip_code.strip(),
            instructions=(request.delivery_instructions or "").strip() or None,
        )
    except ValueError as exc:
        raise ValidationError(str(exc), code="INVALID_DELIVERY_DETAILS") from exc


def to_card_details(
    payment_method: PaymentMethod,
    request: CardDetailsRequest | None,
) -> CardDetails | None:
    if payment_method == PaymentMethod.CASH:
        return None
    if request is None:
        raise ValidationError("card payments require card details", code="INVALID_PAYMENT")
    try:
        return CardDetails(
            last4=request.last4.strip(),
            brand=request.brand,
            expiry_month=request.expiry_month,
            expiry_year=request.expiry_year,
        )
    except ValueError as exc:
        raise ValidationError(str(exc), code="INVALID_PAYMENT") from exc
