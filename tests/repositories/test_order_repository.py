"""
Tests for OrderRepository, using the chainable Supabase mock.
"""
import pytest

from app.core.exceptions import DatabaseError
from app.repositories.order import Order, OrderRepository, OrderStatus


class TestOrderFromDict:

    def test_parses_items_and_status(self):
        order = Order.from_dict({
            "id": 1,
            "order_ref": "ORD-1",
            "customer_id": "c1",
            "items": [{"name": "Mug", "quantity": 2, "price": 7.5}],
            "price": "15",
            "status": "completed",
        })

        assert order.id == "1"
        assert order.items[0].quantity == 2
        assert order.price == 15.0
        assert order.status == OrderStatus.COMPLETED

    def test_unknown_status_defaults_to_pending(self):
        order = Order.from_dict({"id": "o1", "status": "lost"})

        assert order.status == OrderStatus.PENDING


class TestOrderRepository:

    @pytest.mark.asyncio
    async def test_get_by_ref(self, mock_supabase_factory):
        db = mock_supabase_factory([{"id": "o1", "order_ref": "ORD-1", "customer_id": "c1"}])
        repo = OrderRepository(db)

        order = await repo.get_by_ref("ORD-1")

        assert order.order_ref == "ORD-1"
        db.eq.assert_called_with("order_ref", "ORD-1")

    @pytest.mark.asyncio
    async def test_count_for_customer_uses_exact_count(self, mock_supabase_factory):
        db = mock_supabase_factory([{"id": "o1"}])
        db.execute.return_value.count = 4
        repo = OrderRepository(db)

        assert await repo.count_for_customer("c1") == 4
        db.select.assert_called_with("id", count="exact")

    @pytest.mark.asyncio
    async def test_recent_for_customer_is_newest_first(self, mock_supabase_factory):
        db = mock_supabase_factory([{"id": "o2"}, {"id": "o1"}])
        repo = OrderRepository(db)

        orders = await repo.recent_for_customer("c1", limit=5)

        assert [o.id for o in orders] == ["o2", "o1"]
        db.order.assert_called_with("created_at", desc=True)
        db.range.assert_called_with(0, 4)

    @pytest.mark.asyncio
    async def test_create_without_returned_row_fails(self, mock_supabase_factory):
        repo = OrderRepository(mock_supabase_factory([]))

        with pytest.raises(DatabaseError):
            await repo.create({"order_ref": "ORD-1", "customer_id": "c1"})

    @pytest.mark.asyncio
    async def test_delete_reports_missing_row(self, mock_supabase_factory):
        repo = OrderRepository(mock_supabase_factory([]))

        assert await repo.delete("o1") is False
