"""
Fixed plan table. Prices are in cents.
"""
from dataclasses import dataclass
from typing import Optional


MODE_PAYMENT = 'payment'
MODE_SUBSCRIPTION = 'subscription'


@dataclass(frozen=True)
class Plan:
    key: str
    price_cents: int
    mode: str
    name: str
    description: str
    interval: Optional[str] = None

    @property
    def is_recurring(self) -> bool:
        return self.mode == MODE_SUBSCRIPTION


PLANS = {
    'one_letter': Plan(
        key='one_letter',
        price_cents=29900,
        mode=MODE_PAYMENT,
        name='Single Letter Generation',
        description='Generate one professional legal letter',
    ),
    'four_letters': Plan(
        key='four_letters',
        price_cents=29900,
        mode=MODE_SUBSCRIPTION,
        interval='year',
        name='Four Letters Monthly',
        description='Generate up to 4 letters per month, billed yearly',
    ),
    'eight_letters': Plan(
        key='eight_letters',
        price_cents=59900,
        mode=MODE_SUBSCRIPTION,
        interval='year',
        name='Eight Letters Monthly',
        description='Generate up to 8 letters per month, billed yearly',
    ),
}

PLAN_CHOICES = [(plan.key, plan.name) for plan in PLANS.values()]


def get_plan(key):
    """Return the Plan for ``key`` or None."""
    if not key:
        return None
    return PLANS.get(key)


def compute_discount(price_cents: int, percent_off: int) -> int:
    """floor(price * percent_off / 100), in cents."""
    return (price_cents * percent_off) // 100


def compute_charge(price_cents: int, percent_off: int = 0) -> int:
    """Price after discount, never below zero."""
    return max(price_cents - compute_discount(price_cents, percent_off), 0)
