"""
Ledger data models.

Valentine requests as mirrored from the registry contract, the wire
decoders that turn contract return values and event arguments into
requests, and the status enums exposed by the synchronizer.
"""

import re
from dataclasses import dataclass, replace
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping, Sequence

from ledger_sync.core.exceptions import ValidationError

Address = str

NULL_ADDRESS: Address = "0x0000000000000000000000000000000000000000"

ADDRESS_PATTERN = re.compile(r"^0x[0-9a-f]{40}$")

WEI_PER_ETHER = Decimal(10) ** 18

# Value attached to every new request transaction
REQUEST_VALUE_ETHER = Decimal("0.1")


# =============================================================================
# Enums
# =============================================================================


class SyncStatus(str, Enum):
    """Synchronizer status."""
    INITIALIZING = "initializing"
    READY = "ready"
    ERROR = "error"


class ErrorKind(str, Enum):
    """Why the last boot attempt stopped."""
    NO_TRANSPORT = "NO_TRANSPORT"
    DISCONNECTED = "DISCONNECTED"
    NOT_DEPLOYED = "NOT_DEPLOYED"
    UNHANDLED = "UNHANDLED"


class UpdateKind(str, Enum):
    """What changed when listeners are notified."""
    REQUESTS = "requests"
    STATUS = "status"


class LedgerEvent(str, Enum):
    """Contract event names."""
    REQUEST_CREATED = "LogValentineRequestCreated"
    REQUEST_ACCEPTED = "LogRequestAccepted"


# =============================================================================
# Addresses
# =============================================================================


def is_valid_address(address: Any) -> bool:
    """Check for a 0x-prefixed 40 hex digit address, ignoring case."""
    if not isinstance(address, str):
        return False
    return ADDRESS_PATTERN.match(address.lower()) is not None


def normalize_address(address: str) -> Address:
    """Lowercase an address so it can be used as a store key."""
    return address.lower()


def to_wei(amount_ether: Decimal | str | int) -> int:
    """Convert an ether amount to wei."""
    return int(Decimal(str(amount_ether)) * WEI_PER_ETHER)


# =============================================================================
# Requests
# =============================================================================


@dataclass(frozen=True)
class ValentineRequest:
    """
    A valentine request recorded on the ledger.

    Attributes:
        requester_name: Name the requester signed with
        valentine_name: Name of the intended valentine
        custom_message: Free text message
        requester_address: Account that created the request (unique key)
        valentine_address: Target account, NULL_ADDRESS for open requests
        was_accepted: Set once when the request is accepted
    """
    requester_name: str
    valentine_name: str
    custom_message: str
    requester_address: Address
    valentine_address: Address = NULL_ADDRESS
    was_accepted: bool = False

    @property
    def is_open(self) -> bool:
        """Open requests may be accepted by any account."""
        return self.valentine_address == NULL_ADDRESS

    def is_placeholder(self) -> bool:
        """
        Check for the empty record the contract returns for unknown keys.

        All text fields empty, not accepted and both addresses null.
        """
        return (
            self.requester_name == ""
            and self.valentine_name == ""
            and self.custom_message == ""
            and not self.was_accepted
            and self.requester_address == NULL_ADDRESS
            and self.valentine_address == NULL_ADDRESS
        )


@dataclass(frozen=True)
class MarkAccepted:
    """The only permitted mutation of a stored request."""

    def apply(self, request: ValentineRequest) -> ValentineRequest:
        return replace(request, was_accepted=True)


RequestMutation = MarkAccepted


# =============================================================================
# Wire Decoding
# =============================================================================

# Positional layout of the contract's request getters
REQUEST_FIELDS = (
    "requester_name",
    "valentine_name",
    "custom_message",
    "was_accepted",
    "valentine_address",
    "requester_address",
)


def _checked_address(key: str, value: Any) -> Address:
    if not is_valid_address(value):
        raise ValidationError(f"{key} is not an address", details={key: repr(value)})
    return normalize_address(value)


def decode_request(fields: Sequence[Any]) -> ValentineRequest:
    """
    Decode a request returned by get_request_by_index or
    get_request_by_requester_address.

    Raises:
        ValidationError: If the field count or a field type is wrong
    """
    if not isinstance(fields, (list, tuple)) or len(fields) != len(REQUEST_FIELDS):
        raise ValidationError(
            f"Expected {len(REQUEST_FIELDS)} request fields",
            details={"received": repr(fields)},
        )

    named = dict(zip(REQUEST_FIELDS, fields))

    for key in ("requester_name", "valentine_name", "custom_message"):
        if not isinstance(named[key], str):
            raise ValidationError(f"{key} must be a string", details={key: repr(named[key])})

    return ValentineRequest(
        requester_name=named["requester_name"],
        valentine_name=named["valentine_name"],
        custom_message=named["custom_message"],
        was_accepted=bool(named["was_accepted"]),
        valentine_address=_checked_address("valentine_address", named["valentine_address"]),
        requester_address=_checked_address("requester_address", named["requester_address"]),
    )


def decode_created_event(args: Mapping[str, Any]) -> ValentineRequest:
    """
    Build a request from LogValentineRequestCreated arguments.

    Raises:
        ValidationError: If an argument is missing or an address is malformed
    """
    try:
        return ValentineRequest(
            requester_name=str(args["requesterName"]),
            valentine_name=str(args["valentineName"]),
            custom_message=str(args["customMessage"]),
            valentine_address=_checked_address("valentineAddress", args["valentineAddress"]),
            requester_address=_checked_address("requesterAddress", args["requesterAddress"]),
            was_accepted=False,
        )
    except (KeyError, TypeError, AttributeError) as e:
        raise ValidationError(
            "Malformed LogValentineRequestCreated arguments",
            details={"args": repr(args)},
        ) from e


def requester_address_of(args: Mapping[str, Any]) -> Address:
    """Extract the requester address from LogRequestAccepted arguments."""
    try:
        return _checked_address("requesterAddress", args["requesterAddress"])
    except (KeyError, TypeError, AttributeError) as e:
        raise ValidationError(
            "Malformed LogRequestAccepted arguments",
            details={"args": repr(args)},
        ) from e
