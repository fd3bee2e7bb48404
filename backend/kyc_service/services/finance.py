"""Loan estimator math (amounts in cents)."""

import math


def calculate_monthly_payment(amount_cents: int, annual_rate_percent: float, term_months: int) -> int:
    """Fixed monthly installment for an amortizing loan, rounded to the cent."""
    if term_months <= 0:
        return 0
    monthly_rate = annual_rate_percent / 100 / 12

    if monthly_rate == 0:
        return _round_half_up(amount_cents / term_months)

    factor = (1 + monthly_rate) ** term_months
    return _round_half_up(amount_cents * monthly_rate * factor / (factor - 1))


def calculate_total_repayment(monthly_payment_cents: int, term_months: int) -> int:
    return _round_half_up(monthly_payment_cents * term_months)


def _round_half_up(value: float) -> int:
    # Half-cents round up, not to even
    return int(math.floor(value + 0.5))
