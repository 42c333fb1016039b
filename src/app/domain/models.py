# src/app/domain/models.py
"""
Domain models for recipes, recommendations, collections and events.
These are pure data structures with no infrastructure dependencies.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Union


class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"


class CollectibleKind(str, Enum):
    """Discriminator shared by every collectible row."""
    RECIPE = "recipe"
    RECOMMENDATION = "recommendation"


class LinkType(str, Enum):
    INSTAGRAM = "instagram"
    FACEBOOK = "facebook"
    GOOGLE_MAP = "google_map"
    ALLTRAIL = "alltrail"
    OTHER = "other"


class RecommendationCategory(str, Enum):
    RECIPE = "recipe"
    ARTICLE = "article"
    EVENT = "event"
    OTHER = "other"


class RecommendationStatus(str, Enum):
    PENDING = "pending"
    PROMOTED = "promoted"
    REJECTED = "rejected"


@dataclass
class IdentityClaims:
    """Verified claims handed over by the identity provider."""
    uid: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    photo_url: Optional[str] = None


@dataclass
class User:
    id: str
    uid: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    photo_url: Optional[str] = None
    role: UserRole = UserRole.USER
    created_at: Optional[datetime] = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


@dataclass
class Ingredient:
    id: str
    name: str


@dataclass
class Unit:
    id: str
    name: str


@dataclass
class Link:
    url: str
    type: LinkType
    description: Optional[str] = None


@dataclass
class Step:
    description: str
    order: int
    image_url: Optional[str] = None


@dataclass
class IngredientLine:
    """One line of a recipe: amount of a referenced ingredient in a referenced unit."""
    ingredient_id: str
    amount: float
    unit_id: str


@dataclass
class PageMetadata:
    """Best-effort metadata scraped from a recommended page."""
    title: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    url: Optional[str] = None
    site: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        """True when nothing describes the page itself; url and site alone do not count."""
        return not any((self.title, self.description, self.image))


@dataclass
class MetadataResult:
    """Outcome of a metadata extraction: metadata on success, error otherwise."""
    metadata: Optional[PageMetadata]
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.metadata is not None


@dataclass
class Recipe:
    id: str
    description: str
    owner_id: Optional[str] = None
    ingredients: list[IngredientLine] = field(default_factory=list)
    steps: list[Step] = field(default_factory=list)
    links: list[Link] = field(default_factory=list)
    cover_image: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    kind: CollectibleKind = field(default=CollectibleKind.RECIPE, init=False)

    @property
    def ingredient_ids(self) -> list[str]:
        return [line.ingredient_id for line in self.ingredients]

    @property
    def unit_ids(self) -> list[str]:
        return [line.unit_id for line in self.ingredients]


@dataclass
class Recommendation:
    id: str
    owner_id: str
    link: str
    category: RecommendationCategory
    description: Optional[str] = None
    metadata: Optional[PageMetadata] = None
    status: RecommendationStatus = RecommendationStatus.PENDING
    promoted_recipe_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    kind: CollectibleKind = field(default=CollectibleKind.RECOMMENDATION, init=False)

    @property
    def is_promoted(self) -> bool:
        return self.status == RecommendationStatus.PROMOTED


# Tagged variant: switch on `.kind` rather than isinstance checks scattered around.
Collectible = Union[Recipe, Recommendation]


@dataclass
class Collection:
    id: str
    description: Optional[str]
    owner_id: Optional[str] = None
    item_ids: list[str] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class Event:
    id: str
    name: str
    value: str
