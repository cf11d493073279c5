"""
adapters.py - Asset Transfer Adapters

The pool never touches balances of the staked asset itself. It moves value into
and out of custody through an AssetAdapter:

1. NativeAssetAdapter - native chain currency. The stake amount is the value
   attached to the call; pushes are outward value transfers.
2. TokenAssetAdapter - external fungible token. The holder pre-authorizes
   custody with an allowance; the adapter checks balance and allowance, then
   pulls with transfer_from. Pushes are direct transfers out of custody.

The chain and the token are external collaborators described by the NativeChain
and FungibleToken protocols. Their transfer calls may hand control to the
recipient (and so reenter the pool); the pool orders its own mutations to be
safe against that.
"""

from __future__ import annotations
from typing import Protocol, runtime_checkable

from .core import (
    InsufficientFundsError, InsufficientAllowanceError, TransferFailureError,
    require_identity,
)


@runtime_checkable
class NativeChain(Protocol):
    """Native value transfer capability of the host chain."""

    def balance_of(self, identity: str) -> int:
        ...

    def transfer_value(self, sender: str, recipient: str, amount: int) -> bool:
        """Move native value; returns False if the transfer did not happen."""
        ...


@runtime_checkable
class FungibleToken(Protocol):
    """
    The subset of a fungible-token contract the pool depends on.

    Mint, burn, decimals and supply are the token's own business.
    """

    def balance_of(self, owner: str) -> int:
        ...

    def allowance(self, owner: str, spender: str) -> int:
        ...

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        ...

    def transfer_from(self, spender: str, owner: str, recipient: str, amount: int) -> bool:
        ...


class NativeAssetAdapter:
    """
    Adapter for native chain currency.

    The amount of a stake is the value sent along with the call, so there is no
    separate pull step that can fail on its own: if the value cannot be attached,
    the call never took place.

    Example:
        adapter = NativeAssetAdapter(chain, custody="0xpool")
        pool = StakingPool("ether", adapter)
        pool.stake("0xalice", 1000, 90)    # 1000 attached to the call
    """

    def __init__(self, chain: NativeChain, custody: str):
        self.chain = chain
        self.custody = require_identity(custody)

    def pull(self, sender: str, amount: int) -> None:
        """
        Receive the value attached to the triggering call.

        Raises:
            InsufficientFundsError: If sender cannot attach the amount
        """
        if not self.chain.transfer_value(sender, self.custody, amount):
            raise InsufficientFundsError(
                f"{sender} cannot attach {amount} to the call "
                f"(balance {self.chain.balance_of(sender)})"
            )

    def push(self, recipient: str, amount: int) -> bool:
        return self.chain.transfer_value(self.custody, recipient, amount)

    def balance_of(self, identity: str) -> int:
        return self.chain.balance_of(identity)

    def __repr__(self) -> str:
        return f"NativeAssetAdapter(custody={self.custody})"


class TokenAssetAdapter:
    """
    Adapter for an external fungible token pulled via a pre-authorized allowance.

    Before staking, the holder approves custody as spender for at least the
    stake amount on the token contract.
    """

    def __init__(self, token: FungibleToken, custody: str):
        self.token = token
        self.custody = require_identity(custody)

    def pull(self, sender: str, amount: int) -> None:
        """
        Pull amount from sender into custody.

        Checks are made in this order: balance, then allowance, then the
        transfer_from call itself.

        Raises:
            InsufficientFundsError: If sender holds less than amount
            InsufficientAllowanceError: If custody is authorized for less than amount
            TransferFailureError: If the token refuses the transfer_from
        """
        balance = self.token.balance_of(sender)
        if balance < amount:
            raise InsufficientFundsError(
                f"{sender} holds {balance}, needs {amount}"
            )
        allowance = self.token.allowance(sender, self.custody)
        if allowance < amount:
            raise InsufficientAllowanceError(
                f"{sender} has authorized {allowance} for {self.custody}, needs {amount}"
            )
        if not self.token.transfer_from(self.custody, sender, self.custody, amount):
            raise TransferFailureError(
                f"token refused transfer_from {sender} -> {self.custody} of {amount}"
            )

    def push(self, recipient: str, amount: int) -> bool:
        return self.token.transfer(self.custody, recipient, amount)

    def balance_of(self, identity: str) -> int:
        return self.token.balance_of(identity)

    def __repr__(self) -> str:
        return f"TokenAssetAdapter(custody={self.custody})"
