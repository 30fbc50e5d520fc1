"""
Supported markets.

GET /countries — Countries a customer can pay from, with their currency.
"""

from fastapi import APIRouter
from pydantic import BaseModel

from checkout.limits.country_limits import COUNTRIES, get_payment_limits

router = APIRouter(prefix="/countries", tags=["countries"])


class CountryOut(BaseModel):
    code: str
    name: str
    currency: str
    flag: str
    minAmount: float
    maxAmount: float


class CountriesResponse(BaseModel):
    success: bool = True
    countries: list[CountryOut]


@router.get("", response_model=CountriesResponse)
async def list_countries():
    """List supported countries and their amount limits."""
    countries = []
    for country in COUNTRIES:
        limits = get_payment_limits(country["code"], country["currency"])
        countries.append(CountryOut(
            **country,
            minAmount=limits.min_amount,
            maxAmount=limits.max_amount,
        ))
    return CountriesResponse(countries=countries)
