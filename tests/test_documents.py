from __future__ import annotations

from datetime import date

from orderflow.services.documents import UNKNOWN_ITEM_NAME
from orderflow.services.orders import LineRequest, OrderService


def test_document_uses_snapshot_prices_and_marks_removed_items(session, make_client, make_item):
    customer = make_client(name="Bistro Na Rohu")
    bread = make_item("Bread", "120.00")
    milk = make_item("Milk", "30.00")
    service = OrderService(session, today=lambda: date(2026, 1, 10))
    order = service.create_order(
        customer.id,
        [LineRequest(bread.id, 5), LineRequest(milk.id, 1)],
        date(2026, 1, 12),
        notes="Leave at the back door",
    ).order
    session.delete(milk)
    bread.unit_price_cents = 1
    session.flush()

    document = service.build_document(order)

    assert document.client_name == "Bistro Na Rohu"
    assert [(line.name, line.unit_price_cents) for line in document.lines] == [
        ("Bread", 12000),
        (UNKNOWN_ITEM_NAME, 3000),
    ]
    assert document.totals.discount.discount_percentage == 10
    assert document.totals.total_cents == 56700
    assert document.filename == f"order-{order.id[-8:]}.pdf"


def test_export_renders_pdf_and_only_advances_pending(session, make_client, make_item):
    customer = make_client()
    bread = make_item("Bread", "10.00")
    service = OrderService(session)
    order = service.create_order(customer.id, [LineRequest(bread.id, 1)], date(2026, 1, 12), status="shipped").order

    exported = service.export_document(order.id)

    assert exported.content.startswith(b"%PDF")
    assert exported.status_changed is False
    assert service.get_order(order.id).status == "shipped"
