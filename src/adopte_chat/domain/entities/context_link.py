from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class AdoptionRequestLink:
    """Adoption request a conversation was opened for."""

    status: str
    company_name: str | None


@dataclass(frozen=True, slots=True)
class ApplicationLink:
    """Offer application a conversation was opened for."""

    status: str
    offer_title: str | None
    company_name: str | None
