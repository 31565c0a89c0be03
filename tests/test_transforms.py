"""Tests for field mapping tables and key transforms."""

import pytest

from errors import PaymentTypeError
from transforms import (
    CUSTOMER_FIELDS,
    PARTIAL_FIELDS,
    PAYMENT_FIELDS,
    apply_rebill_discount,
    calculate_rebill_discount,
    camelize,
    camelize_keys,
    normalize_response,
    pascalize,
    pascalize_keys,
    payment_type_code,
    transform_keys,
)


class TestTransformKeys:
    @pytest.mark.parametrize("table", [PARTIAL_FIELDS, CUSTOMER_FIELDS, PAYMENT_FIELDS])
    def test_every_table_key_renamed_and_others_kept(self, table):
        payload = {key: f"value-{i}" for i, key in enumerate(table)}
        payload["customField"] = "kept"

        result = transform_keys(payload, table)

        assert len(result) == len(payload)
        for key, vendor_key in table.items():
            assert result[vendor_key] == payload[key]
            assert key not in result
        assert result["customField"] == "kept"

    def test_does_not_mutate_input(self):
        payload = {"firstName": "Jane", "state": "US-NY"}
        transform_keys(payload, CUSTOMER_FIELDS)
        assert payload == {"firstName": "Jane", "state": "US-NY"}

    def test_only_top_level_keys_renamed(self):
        payload = {"firstName": "Jane", "extra": {"firstName": "nested"}}
        result = transform_keys(payload, PARTIAL_FIELDS)
        assert result == {"FirstName": "Jane", "extra": {"firstName": "nested"}}

    def test_reverse_mapping_recovers_every_field(self):
        payload = {key: i for i, key in enumerate(PAYMENT_FIELDS)}
        reverse = {v: k for k, v in PAYMENT_FIELDS.items()}
        assert transform_keys(transform_keys(payload, PAYMENT_FIELDS), reverse) == payload

    def test_tables_are_read_only(self):
        with pytest.raises(TypeError):
            PARTIAL_FIELDS["firstName"] = "Other"


class TestCasing:
    @pytest.mark.parametrize(
        "key,expected",
        [
            ("OrderId", "orderId"),
            ("IPAddress", "ipAddress"),
            ("ShippingAddress1", "shippingAddress1"),
            ("CurrencyInIso4217Format", "currencyInIso4217Format"),
            ("order_view", "orderView"),
            ("orderView", "orderView"),
            ("email", "email"),
        ],
    )
    def test_camelize(self, key, expected):
        assert camelize(key) == expected

    @pytest.mark.parametrize(
        "key,expected",
        [
            ("productId", "ProductId"),
            ("product_id", "ProductId"),
            ("discountCycleCount", "DiscountCycleCount"),
            ("quantity", "Quantity"),
        ],
    )
    def test_pascalize(self, key, expected):
        assert pascalize(key) == expected

    def test_pascalize_keys_is_shallow(self):
        assert pascalize_keys({"productId": 1, "meta": {"someKey": 2}}) == {
            "ProductId": 1,
            "Meta": {"someKey": 2},
        }

    def test_camelize_keys_deep(self):
        data = {"OrderId": 7, "OrderProducts": [{"ProductId": 2, "NextDate": None}]}
        assert camelize_keys(data, deep=True) == {
            "orderId": 7,
            "orderProducts": [{"productId": 2, "nextDate": None}],
        }

    def test_camelize_keys_shallow_leaves_nested(self):
        data = {"OrderId": 7, "Child": {"InnerKey": 1}}
        assert camelize_keys(data) == {"orderId": 7, "child": {"InnerKey": 1}}


class TestNormalizeResponse:
    def test_object_array_renamed_deeply(self):
        decoded = [{"OrderId": 1, "OrderProducts": [{"ProductId": 3}]}, {"OrderId": 2}]
        assert normalize_response(decoded) == [
            {"orderId": 1, "orderProducts": [{"productId": 3}]},
            {"orderId": 2},
        ]

    @pytest.mark.parametrize("decoded", [[1, 2, 3], ["US-NY"], []])
    def test_scalar_arrays_pass_through(self, decoded):
        assert normalize_response(decoded) == decoded

    def test_object_root_renamed(self):
        assert normalize_response({"TaxRate": 0.13}) == {"taxRate": 0.13}

    @pytest.mark.parametrize("decoded", [None, 42, 1.5, "ok", True])
    def test_scalar_roots_pass_through(self, decoded):
        assert normalize_response(decoded) == decoded


class TestRebillDiscount:
    def test_no_cent_drift(self):
        line = calculate_rebill_discount({"productId": 2, "price": 19.99, "promoPrice": 9.99})
        assert line["rebillDiscount"] == 10.0
        assert line["discountCycleCount"] == 1
        assert "promoPrice" not in line

    def test_ceiling_each_price_independently(self):
        line = calculate_rebill_discount({"price": 10.001, "promoPrice": 5.001})
        # 1001 - 501 cents
        assert line["rebillDiscount"] == 5.0

    def test_string_prices(self):
        line = calculate_rebill_discount({"price": "19.99", "promoPrice": "9.99"})
        assert line["rebillDiscount"] == 10.0

    def test_keeps_explicit_cycle_count(self):
        line = calculate_rebill_discount(
            {"price": 19.99, "promoPrice": 9.99, "discountCycleCount": 3}
        )
        assert line["discountCycleCount"] == 3

    def test_does_not_mutate_input(self):
        product = {"price": 19.99, "promoPrice": 9.99}
        calculate_rebill_discount(product)
        assert product == {"price": 19.99, "promoPrice": 9.99}

    def test_apply_only_when_discount_missing(self):
        lines = apply_rebill_discount(
            [
                {"productId": 1, "price": 19.99, "promoPrice": 9.99},
                {"productId": 2, "price": 19.99, "promoPrice": 9.99, "rebillDiscount": 2},
                {"productId": 3, "quantity": 1},
                {"productId": 4, "promoPrice": 9.99},
            ]
        )
        assert lines[0]["rebillDiscount"] == 10.0
        assert lines[1]["rebillDiscount"] == 2
        assert lines[1]["promoPrice"] == 9.99
        assert lines[2] == {"productId": 3, "quantity": 1}
        assert lines[3] == {"productId": 4, "promoPrice": 9.99}

    def test_apply_accepts_snake_case(self):
        [line] = apply_rebill_discount([{"product_id": 1, "price": 19.99, "promo_price": 9.99}])
        assert line == {
            "productId": 1,
            "price": 19.99,
            "rebillDiscount": 10.0,
            "discountCycleCount": 1,
        }


class TestPaymentTypeCode:
    @pytest.mark.parametrize(
        "brand,code",
        [
            ("amex", 1),
            ("American Express", 1),
            ("americanExpress", 1),
            ("discover", 2),
            ("MasterCard", 3),
            ("visa", 4),
            ("other", 5),
        ],
    )
    def test_known_brands(self, brand, code):
        assert payment_type_code(brand) == code

    @pytest.mark.parametrize("brand", ["diners", "", None])
    def test_unknown_brand_fails_fast(self, brand):
        with pytest.raises(PaymentTypeError, match="Unknown credit card type"):
            payment_type_code(brand)
