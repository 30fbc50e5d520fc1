"""
Per-market configuration for mobile money collections.

Maps ISO 3166-1 alpha-3 country codes (the form pawaPay uses) to the
currency collected there, the amount limits enforced before any call to
the provider, and the MSISDN prefix a local mobile number must carry.

Amount limits are expressed in major units of the local currency.
"""

from typing import NamedTuple, Optional, TypedDict


class PaymentLimits(NamedTuple):
    """Accepted amount range for a (country, currency) pair."""

    country: str
    currency: str
    min_amount: float
    max_amount: float


class Country(TypedDict):
    code: str
    name: str
    currency: str
    flag: str


PAYMENT_LIMITS: list[PaymentLimits] = [
    PaymentLimits("COD", "CDF", 100, 5_000_000),  # DR Congo
    PaymentLimits("UGA", "UGX", 1000, 5_000_000),  # Uganda
    PaymentLimits("GHA", "GHS", 1, 10_000),  # Ghana
    PaymentLimits("ZMB", "ZMW", 10, 50_000),  # Zambia
    PaymentLimits("KEN", "KES", 100, 100_000),  # Kenya
    PaymentLimits("TZA", "TZS", 1000, 1_000_000),  # Tanzania
    PaymentLimits("RWA", "RWF", 100, 500_000),  # Rwanda
]


COUNTRIES: list[Country] = [
    {"code": "COD", "name": "DR Congo", "currency": "CDF", "flag": "🇨🇩"},
    {"code": "UGA", "name": "Uganda", "currency": "UGX", "flag": "🇺🇬"},
    {"code": "GHA", "name": "Ghana", "currency": "GHS", "flag": "🇬🇭"},
    {"code": "ZMB", "name": "Zambia", "currency": "ZMW", "flag": "🇿🇲"},
    {"code": "KEN", "name": "Kenya", "currency": "KES", "flag": "🇰🇪"},
    {"code": "TZA", "name": "Tanzania", "currency": "TZS", "flag": "🇹🇿"},
    {"code": "RWA", "name": "Rwanda", "currency": "RWF", "flag": "🇷🇼"},
]


# Country calling code; a valid local MSISDN is this prefix + 9 digits.
PHONE_PREFIXES: dict[str, str] = {
    "COD": "243",
    "UGA": "256",
    "GHA": "233",
    "ZMB": "260",
    "KEN": "254",
    "TZA": "255",
    "RWA": "250",
}


# Currencies without minor units in practice (amounts shown as whole numbers)
ZERO_DECIMAL_CURRENCIES = {"UGX", "CDF", "RWF", "TZS"}


SUPPORTED_COUNTRIES = {c["code"] for c in COUNTRIES}


def get_payment_limits(country: str, currency: str) -> Optional[PaymentLimits]:
    for limits in PAYMENT_LIMITS:
        if limits.country == country and limits.currency == currency:
            return limits
    return None


def get_country(code: str) -> Optional[Country]:
    for country in COUNTRIES:
        if country["code"] == code:
            return country
    return None


def is_country_supported(code: str) -> bool:
    return code in SUPPORTED_COUNTRIES
