"""
Domain card catalog.

Read-only source of the domain cards a character can take when levelling up,
either as the free card every level grants or through the Domain Card
advancement option.

Source: Daggerheart SRD, Domains
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Optional
import logging

logger = logging.getLogger(__name__)


class CardType(str, Enum):
    """Domain card types."""
    ABILITY = "ability"
    SPELL = "spell"
    GRIMOIRE = "grimoire"


@dataclass(frozen=True)
class DomainCard:
    """A single domain card."""
    name: str
    domain: str
    level: int                          # 1-10
    card_type: CardType = CardType.ABILITY
    recall_cost: int = 0
    description: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "domain": self.domain,
            "level": self.level,
            "card_type": self.card_type.value,
            "recall_cost": self.recall_cost,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DomainCard":
        return cls(
            name=data["name"],
            domain=data["domain"],
            level=int(data.get("level", 1)),
            card_type=CardType(str(data.get("card_type", data.get("type", "ability"))).lower()),
            recall_cost=int(data.get("recall_cost", data.get("recallCost", 0))),
            description=data.get("description", ""),
        )


class DomainCardCatalog:
    """Registry of domain cards, keyed case-insensitively by name."""

    def __init__(self, cards: Iterable[DomainCard] = ()):
        self._cards: dict[str, DomainCard] = {}
        for card in cards:
            self.register(card)

    def __len__(self) -> int:
        return len(self._cards)

    def __contains__(self, name: str) -> bool:
        return name.lower() in self._cards

    def register(self, card: DomainCard) -> None:
        """Register a card. A later card with the same name replaces the earlier one."""
        key = card.name.lower()
        if key in self._cards:
            logger.warning(f"Replacing domain card '{card.name}'")
        self._cards[key] = card

    def get(self, name: str) -> Optional[DomainCard]:
        """Get a card by name (case-insensitive)."""
        return self._cards.get(name.lower())

    def get_all(self) -> list[DomainCard]:
        return list(self._cards.values())

    def get_domains(self) -> list[str]:
        """Get every domain with at least one card, sorted."""
        return sorted({card.domain for card in self._cards.values()})

    def cards_for_level(
        self,
        level: int,
        domains: Optional[Iterable[str]] = None,
        exclude: Iterable[str] = (),
    ) -> list[DomainCard]:
        """
        Get the cards a character of this level may take.

        Args:
            level: Cards of this level or lower qualify
            domains: Restrict to these domains (None = every domain)
            exclude: Card names to leave out, typically cards already owned

        Returns:
            Matching cards ordered by level, then domain, then name
        """
        allowed = {d.lower() for d in domains} if domains is not None else None
        excluded = {name.lower() for name in exclude}
        cards = [
            card
            for card in self._cards.values()
            if card.level <= level
            and (allowed is None or card.domain.lower() in allowed)
            and card.name.lower() not in excluded
        ]
        return sorted(cards, key=lambda c: (c.level, c.domain, c.name))
