from checkout.limits.country_limits import (
    COUNTRIES,
    PAYMENT_LIMITS,
    SUPPORTED_COUNTRIES,
    Country,
    PaymentLimits,
    get_country,
    get_payment_limits,
    is_country_supported,
)
from checkout.limits.validator import (
    AmountValidation,
    PhoneValidation,
    format_amount,
    to_provider_amount,
    validate_amount,
    validate_phone_number,
)

__all__ = [
    "COUNTRIES",
    "PAYMENT_LIMITS",
    "SUPPORTED_COUNTRIES",
    "Country",
    "PaymentLimits",
    "get_country",
    "get_payment_limits",
    "is_country_supported",
    "AmountValidation",
    "PhoneValidation",
    "format_amount",
    "to_provider_amount",
    "validate_amount",
    "validate_phone_number",
]
