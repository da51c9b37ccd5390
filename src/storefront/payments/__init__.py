"""Payment gateway factory.

``PAYMENT_GATEWAY`` selects the adapter; ``fake`` is the only one shipped.
Tests swap implementations with ``set_gateway`` / ``reset_gateway``.
"""

import os

from storefront.payments.fake_adapter import FakeGateway
from storefront.payments.port import ChargeResult, PaymentGateway, RefundResult

__all__ = ["ChargeResult", "FakeGateway", "PaymentGateway", "RefundResult", "get_gateway", "reset_gateway", "set_gateway"]

_ADAPTERS = {"fake": FakeGateway}

_current_gateway: PaymentGateway | None = None


def get_gateway() -> PaymentGateway:
    global _current_gateway
    if _current_gateway is None:
        name = os.environ.get("PAYMENT_GATEWAY", "fake")
        if name not in _ADAPTERS:
            raise ValueError(f"Unknown payment gateway {name!r}; expected one of {sorted(_ADAPTERS)}")
        _current_gateway = _ADAPTERS[name]()
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    global _current_gateway
    _current_gateway = None
