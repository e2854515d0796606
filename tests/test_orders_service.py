from __future__ import annotations

import json

import pytest
import responses

from rawneeded_client_sdk.exceptions import PreconditionFailedError, ServerError
from rawneeded_client_sdk.models_orders import LineStatus, Order, OrderStatus
from rawneeded_client_sdk.services import OrdersService

from conftest import API, login_payload


def _envelope(data) -> dict:
    return {"content": {"success": True, "data": data}}


def _line(line_id: str, status: str, supplier: str = "s-1") -> dict:
    line = {
        "id": line_id,
        "orderId": "o-1",
        "supplierId": supplier,
        "productId": f"p-{line_id}",
        "quantity": 3,
        "status": status,
    }
    if status in {"RESPONDED", "APPROVED"}:
        line["supplierResponse"] = {"price": 12.5, "shippingCost": 2, "estimatedDelivery": "5 days"}
    return line


def _order(*statuses: str) -> Order:
    lines = [_line(f"l-{index}", status) for index, status in enumerate(statuses, start=1)]
    return Order.model_validate({"id": "o-1", "userId": "u-1", "status": "NEW", "lines": lines})


@responses.activate
def test_list_orders_and_load_lines(customer_session) -> None:
    responses.add(
        responses.GET,
        f"{API}/api/v1/rfq/by-creator",
        json={"content": [{"id": 1, "orderNumber": "RFQ-1", "status": "new"}], "totalPages": 1, "last": True},
    )
    responses.add(
        responses.GET,
        f"{API}/api/v1/rfq/1/lines",
        json=_envelope([_line("l-1", "RESPONDED"), _line("l-2", "PENDING")]),
    )
    service = OrdersService(customer_session)

    page = service.list_orders(status="new")
    assert [order.id for order in page.content] == ["1"]
    assert "status=NEW" in responses.calls[0].request.url

    order = service.load_lines(page.content[0])
    assert order.status is OrderStatus.NEGOTIATING
    assert service.order("1") == order


@responses.activate
def test_approve_line_reconciles_with_refreshed_lines(customer_session) -> None:
    order = _order("RESPONDED", "PENDING")
    responses.add(responses.POST, f"{API}/api/v1/rfq/line/l-1/approve", json=_envelope(None))
    responses.add(
        responses.GET,
        f"{API}/api/v1/rfq/o-1/lines",
        json=_envelope([_line("l-1", "APPROVED"), _line("l-2", "RESPONDED")]),
    )
    service = OrdersService(customer_session)

    line = service.approve_line(order, "l-1")

    assert line.status is LineStatus.APPROVED
    current = service.order("o-1")
    assert current.status is OrderStatus.UNDER_CONFIRMATION
    assert current.line("l-2").status is LineStatus.RESPONDED


@responses.activate
def test_approve_line_rolls_back_when_rejected(customer_session) -> None:
    order = _order("RESPONDED", "PENDING")
    responses.add(responses.POST, f"{API}/api/v1/rfq/line/l-1/approve", json={"message": "down"}, status=500)
    service = OrdersService(customer_session)

    with pytest.raises(ServerError):
        service.approve_line(order, "l-1")

    assert service.order("o-1") == order
    assert service.order("o-1").line("l-1").status is LineStatus.RESPONDED


@responses.activate
def test_approving_an_approved_line_sends_nothing(customer_session) -> None:
    order = _order("APPROVED", "RESPONDED")
    service = OrdersService(customer_session)

    line = service.approve_line(order, "l-1")

    assert line.status is LineStatus.APPROVED
    assert len(responses.calls) == 0


@responses.activate
def test_invalid_transitions_fail_before_any_request(customer_session) -> None:
    service = OrdersService(customer_session)

    with pytest.raises(PreconditionFailedError) as exc:
        service.approve_line(_order("PENDING"), "l-1")
    assert exc.value.code == "LINE_NOT_RESPONDED"

    with pytest.raises(PreconditionFailedError) as exc:
        service.cancel_order(_order("APPROVED", "RESPONDED"))
    assert exc.value.code == "ORDER_NOT_CANCELLABLE"

    assert len(responses.calls) == 0


@responses.activate
def test_cancel_order_rejects_every_line(customer_session) -> None:
    responses.add(responses.DELETE, f"{API}/api/v1/rfq/o-1", json=_envelope(None))
    service = OrdersService(customer_session)

    cancelled = service.cancel_order(_order("RESPONDED", "PENDING"))

    assert cancelled.status is OrderStatus.CANCELLED
    assert {line.status for line in cancelled.lines} == {LineStatus.REJECTED}
    availability = service.action_availability(cancelled)
    assert availability.can_cancel is False
    assert not availability.approvable_line_ids


@responses.activate
def test_cancel_order_rolls_back_on_failure(customer_session) -> None:
    order = _order("RESPONDED", "PENDING")
    responses.add(responses.DELETE, f"{API}/api/v1/rfq/o-1", json={"message": "down"}, status=502)
    service = OrdersService(customer_session)

    with pytest.raises(ServerError):
        service.cancel_order(order)

    assert service.order("o-1").status is OrderStatus.NEW
    assert service.action_availability(order).can_cancel is True


@responses.activate
def test_supplier_responds_to_a_pending_line(session_factory) -> None:
    session = session_factory()
    session.establish(login_payload("SUPPLIER_OWNER", user_id="s-1"))
    responses.add(responses.POST, f"{API}/api/v1/rfq/line/l-1/respond", json=_envelope(None))
    service = OrdersService(session)

    line = service.respond_to_line(
        _order("PENDING", "PENDING"), "l-1", {"price": 40, "shippingCost": 5, "availableQuantity": 3}
    )

    assert line.status is LineStatus.RESPONDED
    assert line.supplier_response.price == 40
    body = json.loads(responses.calls[0].request.body)
    assert body == {"price": 40.0, "shippingCost": 5.0, "availableQuantity": 3}
    assert service.order("o-1").status is OrderStatus.NEGOTIATING


def test_supplier_response_rejects_negative_amounts(customer_session) -> None:
    with pytest.raises(ValueError):
        OrdersService(customer_session).respond_to_line(_order("PENDING"), "l-1", {"price": -1})


@responses.activate
def test_supplier_offers_page(session_factory) -> None:
    session = session_factory()
    session.establish(login_payload("SUPPLIER_OWNER", user_id="s-1"))
    responses.add(
        responses.GET,
        f"{API}/api/v1/rfq/supplier/offers",
        json={"content": [_line("l-1", "PENDING")], "totalPages": 1, "totalElements": 1},
    )

    page = OrdersService(session).list_supplier_offers()

    assert page.total_elements == 1
    assert page.content[0].status is LineStatus.PENDING


@responses.activate
def test_order_messages(customer_session) -> None:
    responses.add(
        responses.GET,
        f"{API}/api/v1/orders/o-1/messages",
        json=_envelope([{"id": 1, "orderId": "o-1", "userName": "Nora", "message": "Any update?"}]),
    )
    responses.add(
        responses.POST,
        f"{API}/api/v1/orders/o-1/messages",
        json=_envelope({"id": 2, "orderId": "o-1", "message": "Shipping Monday"}),
    )
    service = OrdersService(customer_session)

    assert [message.message for message in service.list_messages("o-1")] == ["Any update?"]
    posted = service.post_message("o-1", "  Shipping Monday ")
    assert posted.id == "2"
    assert json.loads(responses.calls[1].request.body) == {"message": "Shipping Monday", "image": None}

    with pytest.raises(ValueError):
        service.post_message("o-1", "   ")


@responses.activate
def test_listing_keeps_only_the_current_page_tracked(customer_session) -> None:
    url = f"{API}/api/v1/rfq/by-creator"
    responses.add(responses.GET, url, json={"content": [{"id": "o-1"}, {"id": "o-2"}], "totalPages": 2})
    responses.add(responses.GET, url, json={"content": [{"id": "o-3"}], "totalPages": 2})
    service = OrdersService(customer_session)

    service.list_orders(page=0)
    assert service.order("o-1") is not None
    service.list_orders(page=1)

    assert service.order("o-1") is None
    assert service.order("o-3") is not None
    service.forget()
    assert service.order("o-3") is None
