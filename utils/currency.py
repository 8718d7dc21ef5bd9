"""
Resolve a client's billing currency from the request
"""
from typing import Optional

from fastapi import Request

from config.settings import settings
from services.plans_config import Currency, SUPPORTED_CURRENCIES

# Euro area member states (ISO 3166-1 alpha-2)
EURO_COUNTRIES = {
    "AT", "BE", "HR", "CY", "EE", "FI", "FR", "DE", "GR", "IE",
    "IT", "LV", "LT", "LU", "MT", "NL", "PT", "SK", "SI", "ES",
}

COUNTRY_HEADERS = ("cf-ipcountry", "x-vercel-ip-country", "x-country-code")


def _supported(value: Optional[str]) -> Optional[str]:
    if value and value.strip().lower() in SUPPORTED_CURRENCIES:
        return value.strip().lower()
    return None


def _country_currency(country: Optional[str]) -> Optional[str]:
    if not country:
        return None
    return Currency.EUR.value if country.strip().upper() in EURO_COUNTRIES else Currency.USD.value


def _accept_language_country(header: Optional[str]) -> Optional[str]:
    """Region of the most preferred `lang-REGION` entry, e.g. 'de-DE,de;q=0.9' -> 'DE'"""
    if not header:
        return None
    for entry in header.split(","):
        tag = entry.split(";")[0].strip()
        if "-" in tag:
            return tag.split("-")[-1]
    return None


def get_user_currency_from_request(request: Request) -> str:
    """
    Currency precedence:
    1. `currency` query parameter or cookie, when supported
    2. geo country header set by the CDN
    3. region of the Accept-Language header
    4. DEFAULT_CURRENCY
    """
    explicit = _supported(request.query_params.get("currency")) or _supported(request.cookies.get("currency"))
    if explicit:
        return explicit

    for header in COUNTRY_HEADERS:
        currency = _country_currency(request.headers.get(header))
        if currency:
            return currency

    currency = _country_currency(_accept_language_country(request.headers.get("accept-language")))
    if currency:
        return currency

    return _supported(settings.default_currency) or Currency.USD.value
