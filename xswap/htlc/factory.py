"""
Escrow factory.

Deploys one fresh Escrow per trade at an address derived from
(factory address, salt), so both parties can compute where the escrow will
live before it exists and fund it by address.
"""

import logging

from ..chains.base import HostContext
from ..core import to_bytes32
from ..errors import AlreadyInitialized, ContractError, DeploymentFailed, NotInitialized
from .escrow import Escrow, Immutables

log = logging.getLogger(__name__)

KEY_ADMIN = "admin"
KEY_ESCROW_CODE_HASH = "escrow_code_hash"


class EscrowFactory:
    """Deterministic escrow deployer."""

    def initialize(self, ctx: HostContext, admin: str, escrow_code_hash: bytes) -> None:
        if ctx.has(KEY_ESCROW_CODE_HASH):
            raise AlreadyInitialized()
        ctx.set(KEY_ESCROW_CODE_HASH, to_bytes32(escrow_code_hash, "escrow_code_hash"))
        ctx.set(KEY_ADMIN, admin)
        log.info(f"Escrow factory {ctx.contract} initialized (admin={admin})")

    def deploy_escrow(self, ctx: HostContext, immutables: Immutables, salt: bytes) -> str:
        """
        Deploy and initialize an escrow. Returns its address.

        Raises:
            NotInitialized: factory not initialized
            DeploymentFailed: address taken or escrow rejected the immutables
        """
        self._code_hash(ctx)
        salt = to_bytes32(salt, "salt")

        address = ctx.deploy(salt, Escrow())
        try:
            ctx.invoke(address, "initialize", immutables)
        except ContractError as e:
            raise DeploymentFailed(f"escrow initialization failed: {e.kind}: {e.message}")

        ctx.emit("deploy_escrow", address)
        log.info(f"Escrow deployed at {address} for {immutables.amount} {immutables.token}")
        return address

    def get_escrow_address(self, ctx: HostContext, salt: bytes) -> str:
        self._code_hash(ctx)
        return ctx.deployed_address(to_bytes32(salt, "salt"))

    def update_escrow_code_hash(self, ctx: HostContext, new_code_hash: bytes) -> None:
        ctx.require_auth(self.get_admin(ctx))
        ctx.set(KEY_ESCROW_CODE_HASH, to_bytes32(new_code_hash, "escrow_code_hash"))
        log.info(f"Escrow factory {ctx.contract} code hash updated")

    def get_escrow_code_hash(self, ctx: HostContext) -> bytes:
        return self._code_hash(ctx)

    def get_admin(self, ctx: HostContext) -> str:
        admin = ctx.get(KEY_ADMIN)
        if admin is None:
            raise NotInitialized()
        return admin

    def _code_hash(self, ctx: HostContext) -> bytes:
        code_hash = ctx.get(KEY_ESCROW_CODE_HASH)
        if code_hash is None:
            raise NotInitialized()
        return code_hash
