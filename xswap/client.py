"""
HTTP client for a remote xswap server.

Usage:
    with XSwapClient("http://localhost:8080") as api:
        status = api.status()
        price = api.order_price(order)
        api.fill_order(order, taker="bob", signers=["alice", "bob"])
"""

import logging
from typing import Any, Dict, Iterable, Optional, Union

import httpx

from .orders import Order

log = logging.getLogger(__name__)

OrderLike = Union[Order, Dict[str, Any]]


class XSwapAPIError(Exception):
    """Non-2xx response. `error` is the contract error kind when there is one."""

    def __init__(self, status_code: int, error: str, message: str, code: Optional[int] = None):
        super().__init__(f"HTTP {status_code} {error}: {message}")
        self.status_code = status_code
        self.error = error
        self.message = message
        self.code = code


def _order_json(order: OrderLike) -> Dict[str, Any]:
    return order.to_dict() if isinstance(order, Order) else dict(order)


class XSwapClient:
    """
    Thin wrapper over the xswap REST API, one method per endpoint.

    Amounts are sent as decimal strings; quote and balance helpers return ints.
    """

    def __init__(self, base_url: str = "http://localhost:8080", timeout: float = 10.0,
                 http: Optional[httpx.Client] = None):
        self.base_url = base_url.rstrip("/")
        self.http = http or httpx.Client(base_url=self.base_url, timeout=timeout)

    def close(self):
        self.http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        response = self.http.request(method, path, **kwargs)
        if response.is_success:
            return response.json()

        try:
            detail = response.json().get("detail")
        except ValueError:
            detail = response.text
        if isinstance(detail, dict):
            error = XSwapAPIError(response.status_code, detail.get("error", "Error"),
                                  detail.get("message", ""), detail.get("code"))
        else:
            error = XSwapAPIError(response.status_code, "HTTPError", str(detail))
        log.warning(f"{method} {path} failed: {error}")
        raise error

    # -------------------------------------------------------------------------
    # Status / auction
    # -------------------------------------------------------------------------

    def status(self) -> Dict[str, Any]:
        return self._request("GET", "/api/status")

    def taking_amount(self, making_amount: int, taking_amount_start: int, taking_amount_end: int,
                      auction_start_time: int, auction_end_time: int,
                      now: Optional[int] = None) -> int:
        data = self._request("POST", "/api/auction/taking-amount", json={
            "making_amount": str(making_amount),
            "taking_amount_start": str(taking_amount_start),
            "taking_amount_end": str(taking_amount_end),
            "auction_start_time": auction_start_time,
            "auction_end_time": auction_end_time,
            "now": now,
        })
        return int(data["amount"])

    def making_amount(self, taking_amount: int, making_amount_start: int, making_amount_end: int,
                      auction_start_time: int, auction_end_time: int,
                      now: Optional[int] = None) -> int:
        data = self._request("POST", "/api/auction/making-amount", json={
            "taking_amount": str(taking_amount),
            "making_amount_start": str(making_amount_start),
            "making_amount_end": str(making_amount_end),
            "auction_start_time": auction_start_time,
            "auction_end_time": auction_end_time,
            "now": now,
        })
        return int(data["amount"])

    # -------------------------------------------------------------------------
    # Orders
    # -------------------------------------------------------------------------

    def order_hash(self, order: OrderLike) -> str:
        return self._request("POST", "/api/orders/hash", json={"order": _order_json(order)})["order_hash"]

    def order_state(self, order: OrderLike) -> str:
        return self._request("POST", "/api/orders/state", json={"order": _order_json(order)})["state"]

    def order_price(self, order: OrderLike) -> int:
        data = self._request("POST", "/api/orders/price", json={"order": _order_json(order)})
        return int(data["taking_amount"])

    def fill_order(self, order: OrderLike, taker: str, signers: Iterable[str]) -> Dict[str, Any]:
        return self._request("POST", "/api/orders/fill", json={
            "order": _order_json(order), "taker": taker, "signers": list(signers),
        })

    def cancel_order(self, order: OrderLike, signers: Iterable[str]) -> Dict[str, Any]:
        return self._request("POST", "/api/orders/cancel", json={
            "order": _order_json(order), "signers": list(signers),
        })

    # -------------------------------------------------------------------------
    # Escrows
    # -------------------------------------------------------------------------

    def create_escrow(self, hashlock: str, maker: str, taker: str, token: str, amount: int,
                      cancellation_timestamp: Optional[int] = None,
                      salt: Optional[str] = None) -> Dict[str, Any]:
        return self._request("POST", "/api/escrows", json={
            "hashlock": hashlock,
            "maker": maker,
            "taker": taker,
            "token": token,
            "amount": str(amount),
            "cancellation_timestamp": cancellation_timestamp,
            "salt": salt,
        })

    def get_escrow(self, address: str) -> Dict[str, Any]:
        return self._request("GET", f"/api/escrows/{address}")

    def withdraw(self, address: str, secret: str, signers: Iterable[str]) -> Dict[str, Any]:
        return self._request("POST", f"/api/escrows/{address}/withdraw", json={
            "secret": secret, "signers": list(signers),
        })

    def cancel_escrow(self, address: str, signers: Iterable[str]) -> Dict[str, Any]:
        return self._request("POST", f"/api/escrows/{address}/cancel", json={
            "signers": list(signers),
        })

    # -------------------------------------------------------------------------
    # Ledger
    # -------------------------------------------------------------------------

    def mint(self, asset: str, holder: str, amount: int) -> int:
        data = self._request("POST", "/api/ledger/mint", json={
            "asset": asset, "holder": holder, "amount": str(amount),
        })
        return int(data["balance"])

    def transfer(self, asset: str, sender: str, recipient: str, amount: int,
                 signers: Optional[Iterable[str]] = None) -> int:
        data = self._request("POST", "/api/ledger/transfer", json={
            "asset": asset,
            "sender": sender,
            "recipient": recipient,
            "amount": str(amount),
            "signers": list(signers) if signers is not None else None,
        })
        return int(data["balance"])

    def balance(self, asset: str, holder: str) -> int:
        data = self._request("GET", "/api/ledger/balance", params={"asset": asset, "holder": holder})
        return int(data["balance"])

    def set_time(self, timestamp: Optional[int] = None, advance: Optional[int] = None) -> int:
        data = self._request("POST", "/api/ledger/time", json={
            "timestamp": timestamp, "advance": advance,
        })
        return data["timestamp"]
