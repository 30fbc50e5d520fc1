"""
Pre-flight validation of payment amounts and phone numbers.

Both checks run before the provider is contacted so that obviously
invalid requests fail fast without a network round trip. They are pure
functions: no I/O and no dependence on configuration beyond the static
country table.
"""

import math
import re
from dataclasses import dataclass
from typing import Optional

from checkout.limits.country_limits import (
    PHONE_PREFIXES,
    ZERO_DECIMAL_CURRENCIES,
    PaymentLimits,
    get_payment_limits,
)

_NON_DIGITS = re.compile(r"\D")
_GENERIC_PHONE = re.compile(r"^\d{10,15}$")


@dataclass
class AmountValidation:
    """Result of an amount check."""

    is_valid: bool
    error: Optional[str] = None
    limits: Optional[PaymentLimits] = None


@dataclass
class PhoneValidation:
    """Result of a phone number check."""

    is_valid: bool
    formatted: Optional[str] = None
    error: Optional[str] = None


def _display(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def validate_amount(amount: float, country: str, currency: str) -> AmountValidation:
    """
    Check an amount against the limits configured for (country, currency).

    Both bounds are inclusive. Currencies without minor units only accept
    whole amounts. The matched limits are returned whenever a limits entry
    exists, so callers can display the accepted range.
    """
    if not math.isfinite(amount):
        return AmountValidation(is_valid=False, error="Invalid amount")

    limits = get_payment_limits(country, currency)
    if limits is None:
        return AmountValidation(
            is_valid=False,
            error=f"Payment not supported for {country} ({currency})",
        )

    if currency in ZERO_DECIMAL_CURRENCIES and not float(amount).is_integer():
        return AmountValidation(
            is_valid=False,
            error=f"Amount must be a whole number of {currency}",
            limits=limits,
        )

    if amount < limits.min_amount:
        return AmountValidation(
            is_valid=False,
            error=f"Minimum amount is {_display(limits.min_amount)} {currency}",
            limits=limits,
        )

    if amount > limits.max_amount:
        return AmountValidation(
            is_valid=False,
            error=f"Maximum amount is {_display(limits.max_amount)} {currency}",
            limits=limits,
        )

    return AmountValidation(is_valid=True, limits=limits)


def validate_phone_number(raw: str, country: Optional[str] = None) -> PhoneValidation:
    """
    Normalize a phone number to its digits-only MSISDN form.

    Args:
        raw: Number as typed by the customer ("+256 701-234-567").
        country: Optional alpha-3 country code. When the country has a
            known calling-code prefix the number must be that prefix
            followed by exactly 9 digits.

    Returns:
        PhoneValidation with the cleaned number on success.
    """
    cleaned = _NON_DIGITS.sub("", raw or "")

    if not _GENERIC_PHONE.match(cleaned):
        return PhoneValidation(is_valid=False, error="Phone number must be 10-15 digits")

    prefix = PHONE_PREFIXES.get(country) if country else None
    if prefix and not re.fullmatch(rf"{prefix}\d{{9}}", cleaned):
        return PhoneValidation(
            is_valid=False,
            error=f"Phone number must match format: {prefix}XXXXXXXXX",
        )

    return PhoneValidation(is_valid=True, formatted=cleaned)


def format_amount(amount: float, currency: str) -> str:
    """Format an amount for display, e.g. "1,500 UGX" or "12.50 GHS"."""
    if currency in ZERO_DECIMAL_CURRENCIES:
        return f"{amount:,.0f} {currency}"
    return f"{amount:,.2f} {currency}"


def to_provider_amount(amount: float, currency: str) -> str:
    """Amount as the decimal string pawaPay expects ("1500" or "12.50")."""
    if currency in ZERO_DECIMAL_CURRENCIES:
        return f"{amount:.0f}"
    return f"{amount:.2f}"
