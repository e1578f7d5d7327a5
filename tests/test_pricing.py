"""Tests for the pricing functions and the shipping policy."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from shopcart.domain.entities import Discount, ProductState
from shopcart.domain.pricing import (
    ShippingPolicy,
    as_utc,
    discount_active,
    discount_amount,
    effective_price,
)

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def product(base_price="100", discount=None):
    return ProductState(id=1, name="Jacket", base_price=Decimal(base_price), total_stock=5, discount=discount)


class TestEffectivePrice:
    def test_no_discount(self):
        """Base price is returned unchanged without a discount."""
        assert effective_price(product(), NOW) == Decimal("100")
        assert discount_amount(product(), NOW) == Decimal("0")

    def test_active_discount(self):
        """20% off 100 is 80."""
        p = product(discount=Discount(percentage=Decimal("20")))
        assert effective_price(p, NOW) == Decimal("80")
        assert discount_amount(p, NOW) == Decimal("20")

    def test_window_not_started(self):
        p = product(discount=Discount(percentage=Decimal("20"), start=NOW + timedelta(days=1)))
        assert not discount_active(p, NOW)
        assert effective_price(p, NOW) == Decimal("100")

    def test_window_ended(self):
        p = product(discount=Discount(percentage=Decimal("20"), end=NOW - timedelta(seconds=1)))
        assert effective_price(p, NOW) == Decimal("100")

    def test_window_bounds_inclusive(self):
        """Discount applies at exactly the start and the end of the window."""
        p = product(discount=Discount(percentage=Decimal("10"), start=NOW, end=NOW))
        assert effective_price(p, NOW) == Decimal("90")

    def test_naive_bounds_are_utc(self):
        """Naive datetimes from the store are read as UTC."""
        p = product(
            discount=Discount(
                percentage=Decimal("50"),
                start=datetime(2026, 3, 1, 11, 0),
                end=datetime(2026, 3, 1, 13, 0),
            )
        )
        assert effective_price(p, NOW) == Decimal("50")

    def test_offset_bounds_compare_in_utc(self):
        """A window given at +02:00 opens at the same instant as its UTC form."""
        plus_two = timezone(timedelta(hours=2))
        p = product(discount=Discount(percentage=Decimal("50"), start=datetime(2026, 3, 1, 14, 0, tzinfo=plus_two)))
        assert effective_price(p, NOW) == Decimal("50")
        assert effective_price(p, NOW - timedelta(seconds=1)) == Decimal("100")

    def test_full_discount_is_free(self):
        p = product(discount=Discount(percentage=Decimal("100")))
        assert effective_price(p, NOW) == Decimal("0")

    @pytest.mark.parametrize("pct", ["0", "0.5", "33.33", "99.99", "100"])
    def test_never_above_base_price(self, pct):
        p = product(base_price="19.99", discount=Discount(percentage=Decimal(pct)))
        assert effective_price(p, NOW) <= p.base_price


class TestShippingPolicy:
    def test_default_threshold(self):
        policy = ShippingPolicy()
        assert policy(Decimal("30")) == Decimal("5.99")
        assert policy(Decimal("50")) == Decimal("5.99")
        assert policy(Decimal("50.01")) == Decimal("0")

    def test_custom_policy(self):
        policy = ShippingPolicy(free_threshold=Decimal("100"), flat_fee=Decimal("9.90"))
        assert policy(Decimal("99")) == Decimal("9.90")
        assert policy(Decimal("150")) == Decimal("0")


class TestAsUtc:
    def test_none(self):
        assert as_utc(None) is None

    def test_naive_is_tagged_utc(self):
        assert as_utc(datetime(2026, 3, 1, 12, 0)) == NOW
        assert as_utc(datetime(2026, 3, 1, 12, 0)).tzinfo == timezone.utc

    def test_aware_is_converted(self):
        local = datetime(2026, 3, 1, 7, 0, tzinfo=timezone(timedelta(hours=-5)))
        converted = as_utc(local)
        assert converted.tzinfo == timezone.utc
        assert (converted.hour, converted.minute) == (12, 0)
