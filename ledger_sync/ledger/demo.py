"""
Demo request generator.

Produces synthetic requests so a freshly deployed registry has something
to show before real requests arrive.
"""

import random
import string
from typing import Container, Iterator, List, Optional

from .models import NULL_ADDRESS, Address, ValentineRequest

LETTERS = string.ascii_letters
HEX_DIGITS = "123456789abcdef"

# Interior hex digits of the null address (skips "0x", the first and the last digit)
_FIRST_INTERIOR = 3
_LAST_INTERIOR = len(NULL_ADDRESS) - 2


class DemoRequestGenerator:
    """
    Synthetic request factory.

    Addresses are the null address with one interior digit replaced by a
    non-zero hex digit, so they are valid, distinct from the null address
    and cannot be mistaken for placeholders.

    Example:
        >>> generator = DemoRequestGenerator(seed=7)
        >>> requests = generator.generate(10, taken=store)
    """

    def __init__(self, name_length: int = 10, seed: Optional[int] = None):
        self._name_length = name_length
        self._rng = random.Random(seed)

    @property
    def address_space(self) -> int:
        """Number of distinct addresses the generator can produce."""
        return (_LAST_INTERIOR - _FIRST_INTERIOR + 1) * len(HEX_DIGITS)

    def fake_name(self, length: int) -> str:
        return "".join(self._rng.choice(LETTERS) for _ in range(length))

    def fake_address(self) -> Address:
        index = self._rng.randint(_FIRST_INTERIOR, _LAST_INTERIOR)
        digit = self._rng.choice(HEX_DIGITS)
        return NULL_ADDRESS[:index] + digit + NULL_ADDRESS[index + 1:]

    def _unique_addresses(self, taken: Container[Address]) -> Iterator[Address]:
        seen = set()
        while len(seen) < self.address_space:
            address = self.fake_address()
            if address in seen:
                continue
            seen.add(address)
            if address not in taken:
                yield address

    def generate(self, count: int, taken: Container[Address] = ()) -> List[ValentineRequest]:
        """
        Create up to count open requests whose addresses are not in taken.

        Fewer are returned only when the address space is exhausted.
        """
        requests = []
        addresses = self._unique_addresses(taken)
        for address in addresses:
            if len(requests) >= count:
                break
            requests.append(ValentineRequest(
                requester_name=self.fake_name(self._name_length),
                valentine_name=self.fake_name(self._name_length + 2),
                custom_message=self.fake_name(self._name_length * 2),
                requester_address=address,
                valentine_address=NULL_ADDRESS,
                was_accepted=False,
            ))
        return requests
