"""Source adapter contract.

An adapter turns a sanitized term and region into raw candidate records from
one marketplace. Adapters must not raise for network errors or markup
changes: they log and return an empty list. The queue manager still guards
every call, since an adapter can time out or break in ways it cannot catch.
"""

from abc import ABC, abstractmethod
from typing import TypedDict


class RawCandidate(TypedDict, total=False):
    """Untyped bag of fields from a source. Every key is optional.

    Marketplace sources fill title/price/url/image/source/condition/location.
    Housing sources fill id/address/city/state/zip/price/beds/baths/sqft/status/url.
    """

    id: str
    title: str
    address: str
    price: str
    url: str | None
    image: str | None
    source: str
    condition: str
    status: str
    location: str
    city: str
    state: str
    zip: str
    beds: float
    baths: float
    sqft: float


class SourceAdapter(ABC):
    """Base class that every source adapter must implement."""

    @property
    @abstractmethod
    def source_id(self) -> str:
        """Unique identifier for this source (e.g. 'reverb')."""

    @abstractmethod
    async def fetch(self, term: str, region: str, timeout: float) -> list[RawCandidate]:
        """Return raw candidates for ``term`` near ``region`` (a 5-digit postal code)."""
