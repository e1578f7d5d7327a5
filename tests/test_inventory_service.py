"""Tests for InventoryService (the stock ledger)."""

import threading
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from shopcart.data.database import Base
from shopcart.domain.exceptions import (
    InsufficientStock,
    ProductNotFound,
    UnknownVariant,
    ValidationError,
)
from shopcart.domain.schemas import ProductCreate
from shopcart.services.inventory_service import InventoryService
from shopcart.services.product_service import ProductService


class TestIsInStock:
    def test_aggregate(self, inventory, make_product):
        assert inventory.is_in_stock(make_product(total_stock=1).id)
        assert not inventory.is_in_stock(make_product(total_stock=0).id)

    def test_by_size(self, inventory, make_product):
        p = make_product(sizes={"S": 0, "M": 2})
        assert inventory.is_in_stock(p.id, "M")
        assert not inventory.is_in_stock(p.id, "S")

    def test_unknown_size_is_false(self, inventory, make_product):
        p = make_product(sizes={"M": 2})
        assert inventory.is_in_stock(p.id, "XXL") is False

    def test_missing_product(self, inventory):
        with pytest.raises(ProductNotFound):
            inventory.is_in_stock(999)


class TestDecrementStock:
    def test_aggregate_decrement(self, inventory, make_product):
        p = make_product(total_stock=5)
        level = inventory.decrement_stock(p.id, 2)
        assert level.total_stock == 3
        assert inventory.get_stock(p.id).total_stock == 3

    def test_size_decrement_updates_both_counters(self, inventory, make_product):
        p = make_product(sizes={"S": 2, "M": 4})
        level = inventory.decrement_stock(p.id, 3, size="M")
        assert level.total_stock == 3
        assert {s.size: s.stock for s in level.sizes} == {"S": 2, "M": 1}
        assert level.total_stock == sum(s.stock for s in level.sizes)

    def test_overdraw_fails_without_partial_decrement(self, inventory, make_product):
        """Asking for remaining + 1 fails and leaves stock unchanged."""
        p = make_product(total_stock=5)
        inventory.decrement_stock(p.id, 2)

        with pytest.raises(InsufficientStock) as exc:
            inventory.decrement_stock(p.id, 4)

        assert exc.value.data["available"] == 3
        assert exc.value.data["requested"] == 4
        assert inventory.get_stock(p.id).total_stock == 3

    def test_size_overdraw_leaves_aggregate_untouched(self, inventory, make_product):
        p = make_product(sizes={"S": 1, "M": 4})
        with pytest.raises(InsufficientStock):
            inventory.decrement_stock(p.id, 2, size="S")
        level = inventory.get_stock(p.id)
        assert level.total_stock == 5
        assert {s.size: s.stock for s in level.sizes} == {"S": 1, "M": 4}

    def test_exact_remaining_is_allowed(self, inventory, make_product):
        p = make_product(total_stock=2)
        assert inventory.decrement_stock(p.id, 2).total_stock == 0
        assert not inventory.is_in_stock(p.id)

    def test_unknown_variant(self, inventory, make_product):
        p = make_product(sizes={"M": 4})
        with pytest.raises(UnknownVariant):
            inventory.decrement_stock(p.id, 1, size="XL")
        assert inventory.get_stock(p.id).total_stock == 4

    def test_size_required_for_sized_product(self, inventory, make_product):
        """Without a size a sized product is rejected and neither counter moves."""
        p = make_product(sizes={"S": 2, "M": 4})
        with pytest.raises(ValidationError) as exc:
            inventory.decrement_stock(p.id, 3)

        assert exc.value.code == "SIZE_REQUIRED"
        assert exc.value.data["sizes"] == ["S", "M"]
        level = inventory.get_stock(p.id)
        assert level.total_stock == 6
        assert level.total_stock == sum(s.stock for s in level.sizes)

    def test_missing_product(self, inventory):
        with pytest.raises(ProductNotFound):
            inventory.decrement_stock(12345, 1)

    @pytest.mark.parametrize("quantity", [0, -1, True, 1.5])
    def test_invalid_quantity(self, inventory, make_product, quantity):
        p = make_product(total_stock=5)
        with pytest.raises(ValidationError):
            inventory.decrement_stock(p.id, quantity)


class TestIncrementStock:
    def test_restock_aggregate(self, inventory, make_product):
        p = make_product(total_stock=0)
        assert inventory.increment_stock(p.id, 7).total_stock == 7
        assert inventory.is_in_stock(p.id)

    def test_restock_size(self, inventory, make_product):
        p = make_product(sizes={"S": 0, "M": 1})
        level = inventory.increment_stock(p.id, 3, size="S")
        assert level.total_stock == 4
        assert {s.size: s.stock for s in level.sizes} == {"S": 3, "M": 1}

    def test_unknown_variant(self, inventory, make_product):
        p = make_product(sizes={"M": 1})
        with pytest.raises(UnknownVariant):
            inventory.increment_stock(p.id, 1, size="XL")
        assert inventory.get_stock(p.id).total_stock == 1

    def test_size_required_for_sized_product(self, inventory, make_product):
        p = make_product(sizes={"S": 2, "M": 4})
        with pytest.raises(ValidationError) as exc:
            inventory.increment_stock(p.id, 10)

        assert exc.value.code == "SIZE_REQUIRED"
        level = inventory.get_stock(p.id)
        assert level.total_stock == 6
        assert {s.size: s.stock for s in level.sizes} == {"S": 2, "M": 4}

    def test_missing_product(self, inventory):
        with pytest.raises(ProductNotFound):
            inventory.increment_stock(404, 1)
        with pytest.raises(ProductNotFound):
            inventory.increment_stock(404, 1, size="M")


class TestConcurrentDecrement:
    def test_last_units_are_never_oversold(self, tmp_path):
        """N concurrent decrements of 1 against N-1 units: exactly one fails."""
        n = 8
        engine = create_engine(
            f"sqlite:///{tmp_path / 'stock.db'}",
            connect_args={"check_same_thread": False, "timeout": 30},
        )
        Base.metadata.create_all(engine)
        Session = sessionmaker(bind=engine, autoflush=False)

        with Session() as db:
            product = ProductService(db).create_product(
                ProductCreate(name="Last units", base_price=Decimal("5.00"), total_stock=n - 1)
            )

        barrier = threading.Barrier(n)
        results = []
        results_lock = threading.Lock()

        def worker():
            db = Session()
            try:
                barrier.wait()
                try:
                    InventoryService(db).decrement_stock(product.id, 1)
                    outcome = "ok"
                except InsufficientStock:
                    outcome = "insufficient"
                with results_lock:
                    results.append(outcome)
            finally:
                db.close()

        threads = [threading.Thread(target=worker) for _ in range(n)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count("ok") == n - 1
        assert results.count("insufficient") == 1
        with Session() as db:
            assert InventoryService(db).get_stock(product.id).total_stock == 0
        engine.dispose()
