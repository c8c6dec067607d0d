"""
Catalog entries.

Operas come from a static, pre-generated catalog and are never mutated
after load, so they are frozen dataclasses. JSON uses camelCase keys.
"""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class FirstPerformance:
    """Premiere date and place as published in the source dataset."""

    date: str
    place: str = ""


@dataclass(frozen=True, slots=True)
class ComposerInfo:
    """Composer details carried along from the OpenOpus dump."""

    id: str
    name: str
    complete_name: str | None = None
    birth: str | None = None
    death: str | None = None
    epoch: str | None = None
    portrait: str | None = None


@dataclass(frozen=True, slots=True)
class Opera:
    """
    A catalog entry.

    Attributes:
        id: Stable catalog identifier (OpenOpus work id or a slug)
        title: Work title
        composer: Composer display name
        synopsis: Short description (OpenOpus subtitle)
        first_performance: Premiere info when known
        image_url: Portrait or placeholder image URL
        genre: Raw OpenOpus genre
        epoch: Composer epoch
        composer_info: Raw composer record
    """

    id: str
    title: str
    composer: str
    synopsis: str | None = None
    first_performance: FirstPerformance | None = None
    image_url: str | None = None
    genre: str | None = None
    epoch: str | None = None
    composer_info: ComposerInfo | None = None

    def matches(self, query: str) -> bool:
        """True if title or composer contains query, ignoring case."""
        needle = query.lower()
        return needle in self.title.lower() or needle in self.composer.lower()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Opera":
        """
        Build an Opera from its JSON representation.

        Raises:
            KeyError: If id, title or composer is missing
        """
        premiere = data.get("firstPerformance")
        composer = data.get("composerInfo")
        return cls(
            id=str(data["id"]),
            title=data["title"],
            composer=data["composer"],
            synopsis=data.get("synopsis"),
            first_performance=(
                FirstPerformance(
                    date=str(premiere.get("date", "")),
                    place=premiere.get("place") or "",
                )
                if premiere
                else None
            ),
            image_url=data.get("imageUrl"),
            genre=data.get("genre"),
            epoch=data.get("epoch"),
            composer_info=(
                ComposerInfo(
                    id=str(composer.get("id", "")),
                    name=composer.get("name", ""),
                    complete_name=composer.get("complete_name"),
                    birth=composer.get("birth"),
                    death=composer.get("death"),
                    epoch=composer.get("epoch"),
                    portrait=composer.get("portrait"),
                )
                if composer
                else None
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the catalog JSON shape, omitting unset fields."""
        data: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "composer": self.composer,
        }
        if self.synopsis is not None:
            data["synopsis"] = self.synopsis
        if self.first_performance is not None:
            data["firstPerformance"] = {
                "date": self.first_performance.date,
                "place": self.first_performance.place,
            }
        if self.image_url is not None:
            data["imageUrl"] = self.image_url
        if self.genre is not None:
            data["genre"] = self.genre
        if self.epoch is not None:
            data["epoch"] = self.epoch
        if self.composer_info is not None:
            info = self.composer_info
            data["composerInfo"] = {
                "id": info.id,
                "name": info.name,
                "complete_name": info.complete_name,
                "birth": info.birth,
                "death": info.death,
                "epoch": info.epoch,
                "portrait": info.portrait,
            }
        return data
