"""Universal Money Address parsing."""

import re
from dataclasses import dataclass

from .exceptions import InvalidUMAAddressError

UMA_ADDRESS_PATTERN = re.compile(r"^\$(?P<local_part>[^\s$@]+)@(?P<domain>[^\s$@]+)$")


@dataclass(frozen=True)
class UMAAddress:
    local_part: str
    domain: str

    def __str__(self) -> str:
        return f"${self.local_part}@{self.domain}"

    @classmethod
    def parse(cls, value: str) -> "UMAAddress":
        """Parse a ``$localpart@domain`` address.

        Raises:
            InvalidUMAAddressError: if either part is missing, the ``$`` prefix is absent,
                or the address contains more than one ``$`` or ``@``.
        """
        match = UMA_ADDRESS_PATTERN.match(value.strip()) if value else None
        if match is None:
            raise InvalidUMAAddressError(f"Invalid UMA address: {value!r}. Expected $user@domain.")
        return cls(local_part=match["local_part"], domain=match["domain"])

    @property
    def base_url(self) -> str:
        """Base URL of the VASP responsible for this address."""
        scheme = "http" if "localhost" in self.domain else "https"
        return f"{scheme}://{self.domain}"


def validate_uma_address(value: str) -> str:
    """Return the normalized address or raise InvalidUMAAddressError."""
    return str(UMAAddress.parse(value))
