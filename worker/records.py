"""
Output record: one per results-table row, written exactly once.
"""

from __future__ import annotations

from dataclasses import dataclass

# Placeholder for any field that could not be determined.
UNAVAILABLE = "N/A"

RECORD_FIELDS = (
    "Full Name",
    "Father Name",
    "Address",
    "Country",
    "State",
    "City",
    "Price",
)


@dataclass(frozen=True)
class Record:
    """Extracted row. Every field is a string; unresolved fields hold UNAVAILABLE."""

    full_name: str = UNAVAILABLE
    father_name: str = UNAVAILABLE
    address: str = UNAVAILABLE
    country: str = UNAVAILABLE
    state: str = UNAVAILABLE
    city: str = UNAVAILABLE
    price: str = UNAVAILABLE

    @classmethod
    def unavailable(cls) -> "Record":
        return cls()

    @property
    def has_price(self) -> bool:
        return self.price != UNAVAILABLE

    def as_row(self) -> dict[str, str]:
        """Map to the sink's ordered column names."""
        return {
            "Full Name": self.full_name,
            "Father Name": self.father_name,
            "Address": self.address,
            "Country": self.country,
            "State": self.state,
            "City": self.city,
            "Price": self.price,
        }
