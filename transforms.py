# transforms.py
"""
Field mapping tables and key transforms between caller payloads and the
vendor's PascalCase wire format.

Outbound payloads are renamed one level deep through a static table per
operation kind. Inbound responses are camelCased deeply.
"""

import logging
import math
import re
from types import MappingProxyType
from typing import Any, Iterable, Mapping

from errors import PaymentTypeError

logger = logging.getLogger(__name__)

PARTIAL_FIELDS = MappingProxyType(
    {
        "firstName": "FirstName",
        "lastName": "LastName",
        "address1": "Address1",
        "address2": "Address2",
        "city": "City",
        "country": "Country",
        "state": "Province",
        "postalCode": "PostalCode",
        "phone": "Phone",
        "email": "Email",
        "affid": "AffiliateId",
        "sid": "SubId",
        "productId": "ProductId",
        "ip": "IPAddress",
    }
)

CUSTOMER_FIELDS = MappingProxyType(
    {
        "firstName": "ShippingFirstName",
        "lastName": "ShippingLastName",
        "address1": "ShippingAddress1",
        "address2": "ShippingAddress2",
        "city": "ShippingCity",
        "country": "ShippingCountry",
        "state": "ShippingProvince",
        "postalCode": "ShippingPostalCode",
        "phone": "Phone",
        "email": "Email",
        "affid": "AffiliateId",
        "sid": "SubId",
        "ip": "IPAddress",
    }
)

PAYMENT_FIELDS = MappingProxyType(
    {
        "firstName": "BillingFirstName",
        "lastName": "BillingLastName",
        "address1": "BillingAddress1",
        "address2": "BillingAddress2",
        "city": "BillingCity",
        "country": "BillingCountry",
        "state": "BillingProvince",
        "postalCode": "BillingPostalCode",
        "cvv": "CreditCardCVV",
        "creditCardType": "PaymentType",
        "creditCardNumber": "CreditCardNumber",
        "expMonth": "CreditCardExpirationMonth",
        "expYear": "CreditCardExpirationYear",
        "shippingMethodId": "ShippingMethodId",
    }
)

PAYMENT_TYPES = MappingProxyType(
    {
        "amex": 1,
        "americanexpress": 1,
        "discover": 2,
        "mastercard": 3,
        "visa": 4,
        "other": 5,
    }
)

# Acronym runs stay together ("IPAddress" -> "IP", "Address"), digits split off.
_WORD_RE = re.compile(r"[A-Z]+(?=[A-Z][a-z])|[A-Z]?[a-z]+|[A-Z]+|\d+")


def transform_keys(data: Mapping[str, Any], table: Mapping[str, str]) -> dict:
    """
    Rename top-level keys found in a mapping table.

    Args:
        data: Caller payload. Not modified.
        table: Input field name to vendor field name.

    Returns:
        New dict with mapped keys renamed and all other keys copied as-is.
    """
    return {table.get(key, key): value for key, value in data.items()}


def _words(key: str) -> list[str]:
    return _WORD_RE.findall(key)


def camelize(key: str) -> str:
    """Convert a PascalCase, snake_case or kebab-case key to camelCase."""
    words = _words(key)
    if not words:
        return key
    head, *rest = words
    return head.lower() + "".join(w[:1].upper() + w[1:].lower() for w in rest)


def pascalize(key: str) -> str:
    """Convert a camelCase or snake_case key to PascalCase."""
    words = _words(key)
    if not words:
        return key
    return "".join(w[:1].upper() + w[1:].lower() for w in words)


def camelize_keys(obj: Any, deep: bool = False) -> Any:
    """
    camelCase the keys of a dict.

    With deep=True nested dicts, including dicts inside lists, are renamed
    too. Non-dict values are returned unchanged.
    """
    if isinstance(obj, dict):
        return {
            (camelize(k) if isinstance(k, str) else k): (
                camelize_keys(v, deep=True) if deep else v
            )
            for k, v in obj.items()
        }
    if deep and isinstance(obj, list):
        return [camelize_keys(item, deep=True) for item in obj]
    return obj


def pascalize_keys(obj: Mapping[str, Any]) -> dict:
    """PascalCase the top-level keys of a dict."""
    return {pascalize(k): v for k, v in obj.items()}


def normalize_response(decoded: Any) -> Any:
    """
    Rename the keys of a decoded vendor response to camelCase.

    Arrays are renamed only when their first element is an object; scalar
    roots pass through.
    """
    if isinstance(decoded, list):
        if decoded and isinstance(decoded[0], dict):
            return [camelize_keys(item, deep=True) for item in decoded]
        return decoded
    if isinstance(decoded, dict):
        return camelize_keys(decoded, deep=True)
    return decoded


def calculate_rebill_discount(product: Mapping[str, Any]) -> dict:
    """
    Derive a rebill discount from the gap between price and promo price.

    Both prices are rounded up to whole cents independently before
    subtracting, so 19.99 and 9.99 give exactly 10.0.

    Args:
        product: Line item with price and promoPrice.

    Returns:
        New line item without promoPrice, with rebillDiscount and
        discountCycleCount (default 1) set.
    """
    new_product = dict(product)
    promo_price = new_product.pop("promoPrice")

    price_cents = math.ceil(float(new_product["price"]) * 100)
    promo_cents = math.ceil(float(promo_price) * 100)

    new_product["rebillDiscount"] = (price_cents - promo_cents) / 100
    new_product["discountCycleCount"] = new_product.get("discountCycleCount") or 1
    return new_product


def apply_rebill_discount(products: Iterable[Mapping[str, Any]]) -> list[dict]:
    """
    Fill in rebill discounts for line items that carry a promo price.

    Line item keys are camelCased first so snake_case input works too. Items
    with an explicit rebillDiscount or without a price are left alone.
    """
    result = []
    for product in products:
        line = camelize_keys(dict(product))
        if (
            line.get("promoPrice")
            and not line.get("rebillDiscount")
            and line.get("price") is not None
        ):
            line = calculate_rebill_discount(line)
            logger.debug(
                "Rebill discount for product %s: %s",
                line.get("productId"),
                line["rebillDiscount"],
            )
        result.append(line)
    return result


def payment_type_code(brand: str) -> int:
    """
    Look up the vendor PaymentType code for a card brand.

    Args:
        brand: Card brand name, e.g. "visa" or "American Express".

    Returns:
        Integer payment type code.

    Raises:
        PaymentTypeError: If the brand is not a known card type.
    """
    normalized = re.sub(r"[^a-z]", "", str(brand).lower())
    try:
        return PAYMENT_TYPES[normalized]
    except KeyError:
        raise PaymentTypeError(
            f"Unknown credit card type {brand!r}. "
            f"Expected one of: {', '.join(sorted(PAYMENT_TYPES))}"
        ) from None
