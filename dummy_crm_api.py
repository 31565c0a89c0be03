# file: dummy_crm_api.py
"""
Stand-in for the vendor CRM API, for local development and tests.

Speaks the vendor's PascalCase JSON and reproduces its error shapes:
401 on a bad APIKey, 400 with a ModelState body on validation failure,
402 on a declined card, and a plain-text 500 for ERROR_ORDER_ID.
"""

import os
import random
from datetime import datetime, timedelta, timezone

from flask import Flask, jsonify, request
from faker import Faker
from faker_commerce import Provider as CommerceProvider

import config

app = Flask(__name__)
app.json.sort_keys = False  # keep vendor field order
fake = Faker("en_US")  # US locale for addresses
fake.add_provider(CommerceProvider)
Faker.seed(42)  # Reproducible data
random.seed(42)

API_KEY = os.getenv("DUMMY_API_KEY", "test-api-key")

DECLINE_CARD_NUMBER = "4000000000000002"
ERROR_ORDER_ID = 999999

PRODUCTS = {
    1: ("Trial Pack", 4.95),
    2: ("Monthly Supply", 39.95),
    3: ("Upsell Bottle", 19.99),
}

PROVINCES = {
    "US": [("US-CA", "California"), ("US-NY", "New York"), ("US-OH", "Ohio"), ("US-TX", "Texas")],
    "CA": [("CA-BC", "British Columbia"), ("CA-ON", "Ontario"), ("CA-QC", "Quebec")],
}

TAX_RATES = {"US": 0.0, "CA": 0.13, "GB": 0.2}

SHIPPING_PRICE = 4.99

ADDRESS_FIELDS = (
    "FirstName",
    "LastName",
    "Address1",
    "Address2",
    "City",
    "Country",
    "Province",
    "PostalCode",
)

REQUIRED_PARTIAL_FIELDS = ("FirstName", "LastName", "Email", "ProductId")
REQUIRED_ORDER_FIELDS = (
    "BillingFirstName",
    "BillingLastName",
    "CreditCardNumber",
    "CreditCardExpirationMonth",
    "CreditCardExpirationYear",
)

PARTIALS: dict[int, dict] = {}
ORDERS: dict[int, dict] = {}


def model_state_error(prefix: str, missing: list[str]):
    """Vendor-style 400 response listing required fields."""
    body = {
        "Message": "The request is invalid.",
        "ModelState": {
            f"{prefix}.{field}": [f"The {field} field is required."] for field in missing
        },
    }
    return jsonify(body), 400


def order_product(line: dict) -> dict:
    """Expand a PascalCase order product line into the vendor's response shape."""
    product_id = int(line.get("ProductId", 0))
    name, list_price = PRODUCTS.get(product_id, (fake.ecommerce_name(), 9.99))
    price = float(line.get("Price") or list_price)
    return {
        "ProductId": product_id,
        "Quantity": int(line.get("Quantity", 1)),
        "Price": price,
        "ProductName": name,
        "CurrencyInIso4217Format": "USD",
        "Currency": "$",
        "NextDate": (datetime.now(timezone.utc) + timedelta(days=30)).isoformat(),
        "NextProductId": product_id,
        "BillValue": round(price - float(line.get("RebillDiscount") or 0), 2),
    }


def build_order(order_id: int, data: dict) -> dict:
    """Assemble a full order record from a merged shipping/billing payload."""
    products = [order_product(p) for p in data.get("OrderProducts", [])]
    sub_total = round(sum(p["Price"] * p["Quantity"] for p in products), 2)
    tax = round(sub_total * TAX_RATES.get(data.get("ShippingCountry", "US"), 0.0), 2)
    return {
        "OrderId": order_id,
        "Created": datetime.now(timezone.utc).isoformat(),
        "IsTest": True,
        "IsPrepaid": False,
        "Shipped": False,
        "CustomerId": 5000 + order_id,
        "ShippingFirstName": data.get("ShippingFirstName"),
        "ShippingLastName": data.get("ShippingLastName"),
        "ShippingAddress1": data.get("ShippingAddress1"),
        "ShippingAddress2": data.get("ShippingAddress2"),
        "ShippingCity": data.get("ShippingCity"),
        "ShippingProvince": data.get("ShippingProvince"),
        "ShippingPostalCode": data.get("ShippingPostalCode"),
        "ShippingCountry": data.get("ShippingCountry"),
        "Phone": data.get("Phone"),
        "Email": data.get("Email"),
        "BillingFirstName": data.get("BillingFirstName"),
        "BillingLastName": data.get("BillingLastName"),
        "BillingAddress1": data.get("BillingAddress1"),
        "BillingAddress2": data.get("BillingAddress2"),
        "BillingCity": data.get("BillingCity"),
        "BillingProvince": data.get("BillingProvince"),
        "BillingPostalCode": data.get("BillingPostalCode"),
        "BillingCountry": data.get("BillingCountry"),
        "ShippingMethodId": data.get("ShippingMethodId"),
        "ProcessorId": None,
        "AffiliateId": data.get("AffiliateId"),
        "SubId": data.get("SubId"),
        "ChargebackDate": None,
        "ParentId": None,
        "Status": 1,
        "IPAddress": data.get("IPAddress"),
        "SubTotal": sub_total,
        "Tax": tax,
        "ShippingPrice": SHIPPING_PRICE,
        "Total": round(sub_total + tax + SHIPPING_PRICE, 2),
        "Depth": 0,
        "OrderProducts": products,
    }


def generate_orders(count: int = 25) -> None:
    """Seed ORDERS with fake customers starting from ID 1001."""
    for i in range(count):
        state_code, _ = random.choice(PROVINCES["US"])
        customer = {
            "ShippingFirstName": fake.first_name(),
            "ShippingLastName": fake.last_name(),
            "ShippingAddress1": fake.street_address(),
            "ShippingCity": fake.city(),
            "ShippingProvince": state_code,
            "ShippingPostalCode": fake.zipcode(),
            "ShippingCountry": "US",
            "Phone": fake.phone_number(),
            "Email": fake.email(),
        }
        billing = {k.replace("Shipping", "Billing"): v for k, v in customer.items()}
        lines = [{"ProductId": random.choice(list(PRODUCTS)), "Quantity": 1}]
        order_id = 1001 + i
        ORDERS[order_id] = build_order(
            order_id, {**customer, **billing, "OrderProducts": lines}
        )


def _next_order_id() -> int:
    return max(ORDERS, default=1000) + 1


def _parse_date(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _charge(data: dict):
    """Validate card fields and create the order, or return an error response."""
    missing = [f for f in REQUIRED_ORDER_FIELDS if not data.get(f)]
    if data.get("PaymentType") not in (1, 2, 3, 4, 5):
        missing.append("PaymentType")
    if missing:
        return model_state_error("order", missing)

    if data["CreditCardNumber"] == DECLINE_CARD_NUMBER:
        return jsonify({"Message": "The card was declined.", "ResponseCode": 2}), 402

    order_id = _next_order_id()
    ORDERS[order_id] = build_order(order_id, data)
    return jsonify(ORDERS[order_id])


# Generate seed orders at startup
generate_orders()


@app.before_request
def check_api_key():
    """Reject requests without the configured APIKey header."""
    if request.headers.get("APIKey") != API_KEY:
        return jsonify({"Message": "Authorization has been denied for this request."}), 401


@app.route("/api/partials", methods=["POST"])
def create_partial():
    data = request.get_json(force=True, silent=True) or {}
    missing = [f for f in REQUIRED_PARTIAL_FIELDS if not data.get(f)]
    if missing:
        return model_state_error("partial", missing)

    partial_id = max(PARTIALS, default=100) + 1
    PARTIALS[partial_id] = data
    return jsonify(
        {
            "PartialId": partial_id,
            "Created": datetime.now(timezone.utc).isoformat(),
            **data,
        }
    )


@app.route("/api/orders", methods=["POST"])
def create_order():
    data = request.get_json(force=True, silent=True) or {}
    return _charge(data)


@app.route("/api/partials/order/<int:partial_id>", methods=["POST"])
def create_order_on_partial(partial_id):
    partial = PARTIALS.get(partial_id)
    if partial is None:
        return jsonify({"Message": f"Partial {partial_id} not found."}), 404

    data = request.get_json(force=True, silent=True) or {}
    shipping = {
        (f"Shipping{k}" if k in ADDRESS_FIELDS else k): v
        for k, v in partial.items()
        if k != "ProductId"
    }
    return _charge({**shipping, **data})


@app.route("/api/orders/upsell/<int:order_id>", methods=["POST"])
def upsell(order_id):
    order = ORDERS.get(order_id)
    if order is None:
        return jsonify({"Message": f"Order {order_id} not found."}), 404

    data = request.get_json(force=True, silent=True) or {}
    added = [order_product(p) for p in data.get("OrderProducts", [])]
    if not added:
        return model_state_error("upsell", ["OrderProducts"])
    order["OrderProducts"].extend(added)
    return jsonify({"OrderId": order_id, "OrderProducts": added})


@app.route("/api/orders/find", methods=["GET"])
def find_orders():
    args = request.args
    if not args.get("fromDate") or not args.get("toDate"):
        return model_state_error("search", ["fromDate", "toDate"])

    start, end = _parse_date(args["fromDate"]), _parse_date(args["toDate"])
    matches = [
        o for o in ORDERS.values()
        if start <= _parse_date(o["Created"]) <= end
        and (not args.get("email") or o["Email"] == args["email"])
        and (not args.get("orderId") or o["OrderId"] == int(args["orderId"]))
    ]
    return jsonify(matches)


@app.route("/api/orders/<int:order_id>", methods=["GET"])
def get_order(order_id):
    if order_id == ERROR_ORDER_ID:
        return "<html><body>Service Unavailable</body></html>", 500, {"Content-Type": "text/html"}

    order = ORDERS.get(order_id)
    if order is None:
        return jsonify({"Message": f"Order {order_id} not found."}), 404
    return jsonify(order)


@app.route("/api/orders/getProvinces/<country>", methods=["GET"])
def get_provinces(country):
    return jsonify(
        [{"Code": code, "Name": name} for code, name in PROVINCES.get(country.upper(), [])]
    )


@app.route("/api/products/calculateTaxForProduct", methods=["GET"])
def calculate_tax():
    product_id = request.args.get("ProductId", type=int)
    country = request.args.get("ShippingCountry", "")
    if product_id not in PRODUCTS:
        return model_state_error("product", ["ProductId"])

    _, price = PRODUCTS[product_id]
    rate = TAX_RATES.get(country, 0.0)
    return jsonify(
        {
            "ProductId": product_id,
            "ShippingCountry": country,
            "TaxRate": rate,
            "Tax": round(price * rate, 2),
        }
    )


if __name__ == "__main__":
    print(f"Generated {len(ORDERS)} orders")
    print(f"APIKey: {API_KEY}")
    app.run(host="0.0.0.0", port=config.DUMMY_API_PORT, debug=True)
