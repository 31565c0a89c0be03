"""
Pytest configuration and shared fixtures for the CRM client tests.

HTTP never leaves the process: unit tests stub responses with
httpx.MockTransport, end-to-end tests route through the Flask dummy API
with httpx.WSGITransport.
"""

import sys
from pathlib import Path

import httpx
import pytest

# Get the project root (parent of tests/)
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))

import dummy_crm_api  # noqa: E402
from clients import CRMClient  # noqa: E402
from schemas import CRMConfig  # noqa: E402

BASE_URL = "https://crm.test/api/"


@pytest.fixture
def records():
    """Log records captured by the client's logger callback."""
    return []


@pytest.fixture
def sent():
    """Requests seen by the mock transport."""
    return []


@pytest.fixture
def make_client(records, sent):
    """
    Factory for a client whose responses come from a handler.

    The handler takes an httpx.Request and returns an httpx.Response, or
    raises to simulate a transport failure.
    """
    clients = []

    def _make(handler, logger=None):
        def _record(request):
            sent.append(request)
            return handler(request)

        client = CRMClient(
            CRMConfig(base_url=BASE_URL, api_key="secret"),
            logger=logger or records.append,
            transport=httpx.MockTransport(_record),
        )
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.close()


@pytest.fixture
def dummy_client(records):
    """Client wired to the Flask dummy vendor API."""
    client = CRMClient(
        CRMConfig(base_url="http://testserver/api", api_key=dummy_crm_api.API_KEY),
        logger=records.append,
        transport=httpx.WSGITransport(app=dummy_crm_api.app),
    )
    yield client
    client.close()


@pytest.fixture
def customer():
    return {
        "firstName": "Jane",
        "lastName": "Doe",
        "address1": "1 Main St",
        "city": "Albany",
        "postalCode": "12207",
        "country": "US",
        "state": "US-NY",
        "email": "jane.doe@example.com",
        "phone": "555-0100",
    }


@pytest.fixture
def payment(customer):
    return {
        "firstName": customer["firstName"],
        "lastName": customer["lastName"],
        "address1": customer["address1"],
        "city": customer["city"],
        "postalCode": customer["postalCode"],
        "country": customer["country"],
        "state": customer["state"],
        "creditCardType": "mastercard",
        "creditCardNumber": "4444444444444445",
        "cvv": "123",
        "expMonth": 1,
        "expYear": 2030,
        "shippingMethodId": 4,
    }
