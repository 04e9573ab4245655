"""
Per-call chat annotations: who to mention and where the call happened.
"""

from typing import List

from pydantic import BaseModel, Field


class Address(BaseModel):
    """
    Best-effort location pulled from a transcript.

    Examples: "2605 Dwight" (primary address), "Russell and California"
    (cross streets).
    """

    primary_address: str = Field("", description="Address number plus street, e.g. '3049 Bancroft'")
    streets: List[str] = Field(default_factory=list, description="Distinct streets in order of first mention")

    def append_street(self, street: str) -> None:
        """Record a street unless it was already seen."""
        if street not in self.streets:
            self.streets.append(street)

    def __str__(self) -> str:
        if self.primary_address:
            return self.primary_address
        if len(self.streets) > 1:
            return f"{self.streets[0]} and {self.streets[1]}"
        return ""


class SlackMeta(BaseModel):
    """Mentions and address computed for one call on one destination channel."""

    mentions: List[str] = Field(default_factory=list)
    address: Address = Field(default_factory=Address)
