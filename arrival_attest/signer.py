"""
Verifier signing identity (secp256k1).

Signatures are EIP-191 personal_sign over the 32 digest bytes, i.e. what
ethers' signMessage(getBytes(digest)) produces and what the contract
checks with ECDSA.recover(toEthSignedMessageHash(digest), signature).
eth-account signs with RFC6979 deterministic nonces and low-S.
"""

from __future__ import annotations

from eth_account import Account
from eth_account.messages import encode_defunct
from eth_account.signers.local import LocalAccount

SIGNATURE_LEN = 65


class SigningIdentity:
    """
    Process-wide signing key.

    Built once at startup and passed to the authority. Only the public
    address is ever exposed; repr never includes key material.
    """

    __slots__ = ("_account",)

    def __init__(self, account: LocalAccount):
        self._account = account

    @staticmethod
    def from_key(private_key: str) -> SigningIdentity:
        """
        Load identity from a hex private key (with or without 0x).

        Raises:
            ValueError: If the key is not a valid secp256k1 scalar
        """
        try:
            return SigningIdentity(Account.from_key(private_key))
        except Exception as e:
            # Never echo the key back in the error.
            raise ValueError(f"invalid verifier private key ({type(e).__name__})") from None

    @staticmethod
    def generate() -> SigningIdentity:
        return SigningIdentity(Account.create())

    @property
    def address(self) -> str:
        """EIP-55 checksummed signer address."""
        return self._account.address

    def export_key(self) -> str:
        """0x-prefixed private key, for key generation tooling only."""
        return "0x" + bytes(self._account.key).hex()

    def sign_digest(self, digest: bytes) -> bytes:
        """
        Sign a 32-byte digest as an EIP-191 personal message.

        Returns:
            65-byte signature r || s || v, v in {27, 28}
        """
        if len(digest) != 32:
            raise ValueError("expected 32-byte digest")
        signed = self._account.sign_message(encode_defunct(primitive=digest))
        sig = bytes(signed.signature)
        if len(sig) != SIGNATURE_LEN:
            raise RuntimeError(f"unexpected signature length {len(sig)}")
        return sig

    def __repr__(self) -> str:
        return f"SigningIdentity(address={self.address})"


def recover_signer(digest: bytes, signature: bytes) -> str:
    """Recover the checksummed address that signed `digest`."""
    return Account.recover_message(encode_defunct(primitive=digest), signature=signature)


def signature_hex(signature: bytes) -> str:
    return "0x" + signature.hex()
