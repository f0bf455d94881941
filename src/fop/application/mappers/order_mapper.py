from __future__ import annotations

from fop.application.dto.responses import (
    CardDetailsResponse,
    CustomizationsResponse,
    DeliveryDetailsResponse,
    LineItemResponse,
    MoneyResponse,
    OrderListResponse,
    OrderResponse,
    OrderSubmittedResponse,
    OrderSummaryResponse,
    SelectedAddonResponse,
    StatusHistoryEntryResponse,
)
from fop.domain.common.money import Money
from fop.domain.order.entities import LineItem, Order, OrderStatus


def to_money_response(money: Money) -> MoneyResponse:
    return MoneyResponse(amountCents=money.amount_cents, currency=money.currency)


def to_line_item_response(line: LineItem) -> LineItemResponse:
    return LineItemResponse(
        lineKey=line.identity,
        itemId=str(line.item_id),
        name=line.name,
        unitPrice=to_money_response(line.unit_price),
        quantity=line.quantity,
        customizations=CustomizationsResponse(
            options=dict(line.customizations.selected_options),
            addons=[
                SelectedAddonResponse(
                    id=addon.addon_id,
                    name=addon.name,
                    price=to_money_response(addon.price),
                )
                for addon in line.customizations.selected_addons
            ],
        ),
        specialInstructions=line.special_instructions,
        lineTotal=to_money_response(line.line_total),
    )


def to_order_response(order: Order) -> OrderResponse:
    delivery = order.delivery_details
    card = order.card_details
    return OrderResponse(
        orderId=str(order.order_id),
        orderNumber=order.order_number,
        customerId=str(order.customer_id),
        restaurantId=str(order.restaurant_id),
        status=order.status.value,
        statusDisplay=order.status_label,
        items=[to_line_item_response(line) for line in order.items],
        totalItems=order.total_items,
        deliveryDetails=DeliveryDetailsResponse(
            firstName=delivery.first_name,
            lastName=delivery.last_name,
            phone=delivery.phone,
            email=delivery.email,
            address=delivery.address,
            city=delivery.city,
            state=delivery.state,
            zipCode=delivery.zip_code,
            deliveryInstructions=delivery.instructions,
        ),
        paymentMethod=order.payment_method.value,
        cardDetails=(
            CardDetailsResponse(
                last4=card.last4,
                brand=card.brand,
                expiryMonth=card.expiry_month,
                expiryYear=card.expiry_year,
            )
            if card is not None
            else None
        ),
        orderSummary=OrderSummaryResponse(
            subtotal=to_money_response(order.summary.subtotal),
            deliveryFee=to_money_response(order.summary.delivery_fee),
            tax=to_money_response(order.summary.tax),
            total=to_money_response(order.summary.total),
        ),
        statusHistory=[
            StatusHistoryEntryResponse(
                status=entry.status.value,
                timestamp=entry.occurred_at,
                actorId=str(entry.actor_id),
                reason=entry.reason,
            )
            for entry in order.status_history
        ],
        estimatedDeliveryMinutes=order.estimated_delivery_minutes,
        estimatedDeliveryDisplay=order.estimated_delivery_display,
        createdAt=order.created_at,
        confirmedAt=order.reached_at(OrderStatus.CONFIRMED),
        preparingAt=order.reached_at(OrderStatus.PREPARING),
        readyAt=order.reached_at(OrderStatus.READY),
        outForDeliveryAt=order.reached_at(OrderStatus.OUT_FOR_DELIVERY),
        deliveredAt=order.reached_at(OrderStatus.DELIVERED),
        cancelledAt=order.cancelled_at,
        cancellationReason=order.cancellation_reason,
    )


def to_order_submitted_response(order: Order) -> OrderSubmittedResponse:
    return OrderSubmittedResponse(
        orderId=str(order.order_id),
        orderNumber=order.order_number,
        status=order.status.value,
        total=to_money_response(order.summary.total),
        estimatedDeliveryMinutes=order.estimated_delivery_minutes,
    )


def to_order_list_response(
    orders: list[Order],
    page: int,
    limit: int,
    total: int,
) -> OrderListResponse:
    return OrderListResponse(
        orders=[to_order_response(order) for order in orders],
        page=page,
        limit=limit,
        total=total,
        pages=(total + limit - 1) // limit,
    )
