"""
Account References

An instruction names every account it touches up front, together with how
it touches it: whether the account must sign the transaction and whether the
instruction may modify it. The message compiler uses these flags to order
the account table and build the message header.

Based on: https://solana.com/docs/core/transactions
"""

from dataclasses import dataclass

from .keys import PublicKey


@dataclass(frozen=True)
class AccountMeta:
    """
    Account metadata for instruction building.

    Declaring access patterns upfront is what lets the runtime schedule
    non-conflicting transactions in parallel.
    """
    pubkey: PublicKey    # Account public key
    is_signer: bool      # Must sign transaction
    is_writable: bool    # Can be modified

    @classmethod
    def writable(cls, pubkey: PublicKey, is_signer: bool = False) -> 'AccountMeta':
        return cls(pubkey, is_signer=is_signer, is_writable=True)

    @classmethod
    def readonly(cls, pubkey: PublicKey, is_signer: bool = False) -> 'AccountMeta':
        return cls(pubkey, is_signer=is_signer, is_writable=False)

    def __str__(self) -> str:
        """Human-readable representation."""
        flags = []
        if self.is_signer:
            flags.append("signer")
        if self.is_writable:
            flags.append("writable")
        flag_str = f"({', '.join(flags)})" if flags else "(readonly)"
        return f"{str(self.pubkey)[:8]}...{flag_str}"
