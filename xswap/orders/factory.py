"""
Order protocol factory.

Deploys an OrderProtocol together with its own DutchAuction pricing
contract. The auction lives at the address derived from SHA256(salt), the
protocol at the address derived from salt.
"""

import logging

from ..auction import DutchAuction
from ..chains.base import HostContext
from ..core import sha256, to_bytes32
from ..errors import AlreadyInitialized, ContractError, DeploymentFailed, NotInitialized
from .protocol import OrderProtocol

log = logging.getLogger(__name__)

KEY_ADMIN = "admin"
KEY_PROTOCOL_CODE_HASH = "protocol_code_hash"
KEY_AUCTION_CODE_HASH = "auction_code_hash"


class OrderProtocolFactory:
    """Deterministic deployer for order protocol instances."""

    def initialize(self, ctx: HostContext, admin: str,
                   protocol_code_hash: bytes, auction_code_hash: bytes) -> None:
        if ctx.has(KEY_ADMIN):
            raise AlreadyInitialized()
        ctx.set(KEY_PROTOCOL_CODE_HASH, to_bytes32(protocol_code_hash, "protocol_code_hash"))
        ctx.set(KEY_AUCTION_CODE_HASH, to_bytes32(auction_code_hash, "auction_code_hash"))
        ctx.set(KEY_ADMIN, admin)
        log.info(f"Order protocol factory {ctx.contract} initialized (admin={admin})")

    def deploy_order_protocol(self, ctx: HostContext, salt: bytes, admin: str) -> str:
        """Deploy a DutchAuction, then an OrderProtocol wired to it."""
        self._get(ctx, KEY_PROTOCOL_CODE_HASH)
        salt = to_bytes32(salt, "salt")

        auction_address = self.deploy_dutch_auction(ctx, sha256(salt))
        address = ctx.deploy(salt, OrderProtocol())
        try:
            ctx.invoke(address, "initialize", admin, auction_address)
        except ContractError as e:
            raise DeploymentFailed(f"order protocol initialization failed: {e.kind}")

        ctx.emit("deploy_order_protocol", address)
        log.info(f"Order protocol deployed at {address} (auction={auction_address})")
        return address

    def deploy_dutch_auction(self, ctx: HostContext, salt: bytes) -> str:
        self._get(ctx, KEY_AUCTION_CODE_HASH)
        address = ctx.deploy(to_bytes32(salt, "salt"), DutchAuction())
        ctx.emit("deploy_dutch_auction", address)
        return address

    def get_order_protocol_address(self, ctx: HostContext, salt: bytes) -> str:
        self._get(ctx, KEY_PROTOCOL_CODE_HASH)
        return ctx.deployed_address(to_bytes32(salt, "salt"))

    def get_dutch_auction_address(self, ctx: HostContext, salt: bytes) -> str:
        self._get(ctx, KEY_AUCTION_CODE_HASH)
        return ctx.deployed_address(to_bytes32(salt, "salt"))

    def update_protocol_code_hash(self, ctx: HostContext, new_code_hash: bytes) -> None:
        ctx.require_auth(self.get_admin(ctx))
        ctx.set(KEY_PROTOCOL_CODE_HASH, to_bytes32(new_code_hash, "protocol_code_hash"))

    def update_auction_code_hash(self, ctx: HostContext, new_code_hash: bytes) -> None:
        ctx.require_auth(self.get_admin(ctx))
        ctx.set(KEY_AUCTION_CODE_HASH, to_bytes32(new_code_hash, "auction_code_hash"))

    def get_protocol_code_hash(self, ctx: HostContext) -> bytes:
        return self._get(ctx, KEY_PROTOCOL_CODE_HASH)

    def get_auction_code_hash(self, ctx: HostContext) -> bytes:
        return self._get(ctx, KEY_AUCTION_CODE_HASH)

    def get_admin(self, ctx: HostContext) -> str:
        return self._get(ctx, KEY_ADMIN)

    def _get(self, ctx: HostContext, key: str):
        value = ctx.get(key)
        if value is None:
            raise NotInitialized()
        return value
