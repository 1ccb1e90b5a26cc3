from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional


@dataclass
class Recipe:
    """Domain object representing a stored recipe."""

    id: str
    name: str
    instructions: List[str] = field(default_factory=list)
    ingredients: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    published_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "instructions": list(self.instructions),
            "ingredients": list(self.ingredients),
            "tags": list(self.tags),
            "published_at": self.published_at.isoformat() if self.published_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Recipe":
        published_at = data.get("published_at")
        if isinstance(published_at, str):
            published_at = datetime.fromisoformat(published_at)

        return cls(
            id=data["id"],
            name=data.get("name", ""),
            instructions=list(data.get("instructions") or []),
            ingredients=list(data.get("ingredients") or []),
            tags=list(data.get("tags") or []),
            published_at=published_at,
        )


@dataclass
class User:
    """A registered account. ``password`` always holds a bcrypt hash."""

    username: str
    password: str


__all__ = ["Recipe", "User"]
