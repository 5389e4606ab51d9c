import re

from typing import Any
from pydantic import TypeAdapter
from pydantic_core import PydanticSerializationError
from utils.errors import MalformedTransactionError

# Sui addresses and object IDs are 32 bytes
ADDRESS_LENGTH = 64
HEX_RE = re.compile(r"^[0-9a-fA-F]+$")
# Transaction digests are base58 encoded 32 byte hashes
DIGEST_RE = re.compile(r"^[1-9A-HJ-NP-Za-km-z]{32,44}$")

_ANY_ADAPTER: TypeAdapter[Any] = TypeAdapter(Any)


def standardize_address(address: str) -> str:
    address = address.removeprefix("0x")
    return "0x" + address.zfill(ADDRESS_LENGTH).lower()


def parse_address(address: Any) -> str:
    if not isinstance(address, str):
        raise MalformedTransactionError("Address is not a string", repr(address))
    stripped = address.removeprefix("0x")
    if (
        not stripped
        or len(stripped) > ADDRESS_LENGTH
        or not HEX_RE.match(stripped)
    ):
        raise MalformedTransactionError("Unparseable address", address)
    return standardize_address(stripped)


def parse_transaction_digest(digest: Any) -> str:
    if not isinstance(digest, str) or not DIGEST_RE.match(digest):
        raise MalformedTransactionError("Unparseable transaction digest", str(digest))
    return digest


def to_json_value(value: Any) -> Any:
    """Render pydantic models, dicts, lists and scalars to plain JSON values.

    Raises `ValueError` if some nested value has no JSON representation.
    """
    try:
        return _ANY_ADAPTER.dump_python(value, mode="json")
    except PydanticSerializationError as e:
        raise ValueError(str(e)) from e


def to_signed_i64(value: int) -> int:
    """Reinterpret an unsigned 64 bit integer as the signed BIGINT a column holds."""
    return value - 2**64 if value >= 2**63 else value
