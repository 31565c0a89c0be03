# clients.py
"""
HTTP client for the Continuity CRM order API.

Builds vendor payloads from caller dicts, sends them with httpx, classifies
the response and hands one LogRecord per call to the caller's logger.
"""

import logging
from datetime import date
from typing import Any, Callable, Iterable, Mapping, Optional

import httpx

from errors import CRMError, OperationalError, OrderDeclineError
from schemas import CRMConfig, LogRecord
from transforms import (
    CUSTOMER_FIELDS,
    PARTIAL_FIELDS,
    PAYMENT_FIELDS,
    apply_rebill_discount,
    camelize,
    normalize_response,
    pascalize_keys,
    payment_type_code,
    transform_keys,
)
from utils import start_timer, stop_timer, to_iso_utc

logger = logging.getLogger(__name__)

LogSink = Callable[[LogRecord], None]

BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})


def _noop(record: LogRecord) -> None:
    pass


def error_message(body: Any, default: str) -> str:
    """
    Pick the message for a domain error.

    Args:
        body: Decoded JSON error body.
        default: HTTP reason phrase, used when the body has no ModelState.

    Returns:
        First validation message of ModelState. When ModelState is not a map,
        the first other value of the body. Otherwise the default.
    """
    if not isinstance(body, dict) or "ModelState" not in body:
        return default

    model_state = body["ModelState"]
    if not isinstance(model_state, dict):
        others = [v for k, v in body.items() if k != "ModelState"]
        if not others:
            return default
        first = others[0]
    elif not model_state:
        return default
    else:
        first = next(iter(model_state.values()))

    if isinstance(first, list):
        if not first:
            return default
        first = first[0]
    return str(first)


class CRMClient:
    """
    Client for the vendor order API.

    Usage:
        with CRMClient(CRMConfig(api_key="..."), logger=print) as crm:
            order = crm.get_order(1234)
    """

    def __init__(
        self,
        config: Optional[CRMConfig] = None,
        logger: Optional[LogSink] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            config: Connection settings. Read from CRM_* env vars if omitted.
            logger: Called with one LogRecord per call. Defaults to a no-op.
            transport: Optional httpx transport, e.g. for the dummy API.

        Raises:
            ValueError: If no config is passed and CRM_API_KEY is unset.
        """
        self.config = config or CRMConfig.from_env()
        self.log_sink = logger or _noop
        self.headers = {
            "Content-Type": "application/json",
            "APIKey": self.config.api_key,
        }
        self._http = httpx.Client(
            headers=self.headers,
            timeout=self.config.timeout,
            transport=transport,
        )

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._http.close()

    def __enter__(self) -> "CRMClient":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Request pipeline
    # ------------------------------------------------------------------

    def _emit(self, record: LogRecord) -> None:
        try:
            self.log_sink(record)
        except Exception:
            logger.exception("Logger callback failed for %s", record.endpoint)

    def request(
        self, endpoint: str, data: Optional[Mapping[str, Any]] = None, method: str = "POST"
    ) -> Any:
        """
        Send one request and return the decoded, camelCased response.

        POST/PUT/PATCH send data as a JSON body; other methods append it to
        the endpoint as a query string.

        Args:
            endpoint: Path relative to the base URL.
            data: Payload, may be None.
            method: HTTP method.

        Returns:
            Decoded JSON response with keys camelCased.

        Raises:
            CRMError: If the vendor returns an error status with a JSON body.
            OrderDeclineError: If the vendor declines payment (HTTP 402).
            OperationalError: If the transport fails or an error body is not JSON.
            ValueError: If a success response body is not JSON.
        """
        method = method.upper()
        url = f"{self.config.base_url}{endpoint}"
        body = params = None

        if method in BODY_METHODS:
            body = data if data is not None else {}
        elif data:
            params = data

        logger.debug("request: %s %s %s", method, endpoint, data)

        timer = start_timer()
        try:
            response = self._http.request(method, url, params=params, json=body)
        except httpx.RequestError as e:
            latency = stop_timer(timer)
            placeholder = {"bogusResponse": str(e)}
            self._emit(
                LogRecord(
                    endpoint=endpoint,
                    info=f"{type(e).__name__}: {e}",
                    request_body=data,
                    response_body=placeholder,
                    latency=latency,
                    http_response_code=None,
                )
            )
            logger.error("Request to %s failed: %s", endpoint, e)
            raise OperationalError(
                str(e), request_body=data, response_body=placeholder
            ) from e
        latency = stop_timer(timer)

        logger.debug("status: %d", response.status_code)

        if not response.is_success:
            self._raise_for_status(response, endpoint, data, latency)

        # response.content is buffered, so the text fallback reads the same bytes
        try:
            decoded = response.json()
        except ValueError as e:
            logger.debug("Error decoding JSON from response body: %s", e)
            logger.debug("Non-JSON response: %s", response.text)
            self._emit(
                LogRecord(
                    endpoint=endpoint,
                    info=f"{type(e).__name__}: {e}",
                    request_body=data,
                    response_body={"bogusResponse": response.text},
                    latency=latency,
                    http_response_code=response.status_code,
                )
            )
            raise

        logger.debug("response: %s", decoded)
        self._emit(
            LogRecord(
                endpoint=endpoint,
                request_body=data,
                response_body=decoded,
                latency=latency,
                http_response_code=response.status_code,
            )
        )
        return normalize_response(decoded)

    def _raise_for_status(
        self,
        response: httpx.Response,
        endpoint: str,
        data: Optional[Mapping[str, Any]],
        latency: float,
    ) -> None:
        status = response.status_code
        try:
            body = response.json()
        except ValueError as e:
            text = response.text
            logger.debug("Error decoding JSON from response body: %s", e)
            logger.debug("Non-JSON response: %s", text)
            placeholder = {"bogusResponse": text}
            self._emit(
                LogRecord(
                    endpoint=endpoint,
                    info=f"{type(e).__name__}: {e}",
                    request_body=data,
                    response_body=placeholder,
                    latency=latency,
                    http_response_code=status,
                )
            )
            logger.error("%s returned HTTP %d with a non-JSON body", endpoint, status)
            raise OperationalError(
                text or response.reason_phrase,
                status_code=status,
                request_body=data,
                response_body=placeholder,
            ) from e

        self._emit(
            LogRecord(
                endpoint=endpoint,
                request_body=data,
                response_body=body,
                latency=latency,
                http_response_code=status,
            )
        )

        message = error_message(body, response.reason_phrase)
        error_cls = OrderDeclineError if status == 402 else CRMError
        logger.warning("%s returned HTTP %d: %s", endpoint, status, message)
        raise error_cls(
            message, status_code=status, request_body=data, response_body=body
        )

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def _payment_payload(
        self, payment: Mapping[str, Any], products: Iterable[Mapping[str, Any]]
    ) -> dict:
        return {
            **transform_keys(payment, PAYMENT_FIELDS),
            "OrderProducts": [pascalize_keys(p) for p in products],
            "PaymentType": payment_type_code(payment.get("creditCardType")),
        }

    def new_partial(self, partial: Mapping[str, Any]) -> dict:
        """
        Create a partial (lead) from contact details.

        Args:
            partial: firstName, lastName, address1, address2, city, country,
                state, postalCode, phone, email, affid, sid, productId, ip.

        Returns:
            The created partial record.
        """
        return self.request("partials", transform_keys(partial, PARTIAL_FIELDS))

    def new_order(
        self,
        customer: Mapping[str, Any],
        products: Iterable[Mapping[str, Any]],
        payment: Mapping[str, Any],
    ) -> dict:
        """
        Place an order for a new customer.

        Args:
            customer: Shipping and contact details.
            products: Line items (productId, quantity, price, promoPrice,
                rebillDiscount, discountCycleCount).
            payment: Billing address and card details.

        Returns:
            The created order record.

        Raises:
            PaymentTypeError: If creditCardType is not a known brand.
        """
        lines = apply_rebill_discount(products)
        customer_data = transform_keys(customer, CUSTOMER_FIELDS)
        payment_data = self._payment_payload(payment, lines)
        return self.request("orders", {**customer_data, **payment_data})

    def new_order_on_partial(
        self,
        partial_id: str | int,
        products: Iterable[Mapping[str, Any]],
        payment: Mapping[str, Any],
    ) -> dict:
        """
        Convert an existing partial into an order.

        Raises:
            PaymentTypeError: If creditCardType is not a known brand.
        """
        payment_data = self._payment_payload(payment, products)
        return self.request(f"partials/order/{partial_id}", payment_data)

    def upsell_on_order(
        self, order_id: str | int, products: Iterable[Mapping[str, Any]]
    ) -> dict:
        """Attach upsell line items to an existing order."""
        upsell_data = {"OrderProducts": [pascalize_keys(p) for p in products]}
        return self.request(f"orders/upsell/{order_id}", upsell_data)

    def find_orders(self, from_date: date, to_date: date, **criteria: Any) -> list[dict]:
        """
        Search orders created within a date range.

        Args:
            from_date: Start of the range.
            to_date: End of the range.
            **criteria: Extra filters (email, status, order_view, ...). Keys
                are camelCased before sending.

        Returns:
            Matching order records.
        """
        params = {camelize(k): v for k, v in criteria.items()}
        params.update(
            depth=0,
            toDate=to_iso_utc(to_date),
            fromDate=to_iso_utc(from_date),
        )
        return self.request("orders/find", params, "GET")

    def get_order(self, order_id: str | int) -> dict:
        """Fetch a single order by ID."""
        return self.request(f"orders/{order_id}", None, "GET")

    def get_provinces(self, country: str) -> list:
        """List the provinces the vendor accepts for a country code."""
        return self.request(f"orders/getProvinces/{country}", None, "GET")

    def get_tax_for_product(self, product_id: str | int, shipping_country: str) -> Any:
        """Quote tax for a product shipped to a country."""
        return self.request(
            "products/calculateTaxForProduct",
            {"ProductId": product_id, "ShippingCountry": shipping_country.upper()},
            "GET",
        )
