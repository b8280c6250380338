# =============================================================================
# komfort_core/catalog/models.py
# Domain entities for the storefront catalog
# =============================================================================

from __future__ import annotations
from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import Any, Dict, List, Optional, Union


@dataclass(frozen=True, eq=False)
class EntityId:
    """
    Identifier that is either a local sequential integer or a remote opaque string.

    Digit-only strings are normalized to integers, so EntityId(4) == EntityId("4").
    Comparison with plain int/str values goes through the same normalization.
    """
    value: Union[int, str]

    def __post_init__(self):
        value = self.value
        if isinstance(value, bool) or not isinstance(value, (int, str)):
            raise TypeError(f"Unsupported identifier: {value!r}")
        if isinstance(value, str):
            value = value.strip()
            if value.isdigit():
                value = int(value)
        object.__setattr__(self, "value", value)

    @classmethod
    def of(cls, raw: Union[EntityId, int, str]) -> EntityId:
        return raw if isinstance(raw, EntityId) else cls(raw)

    @property
    def is_local(self) -> bool:
        """Sequential integer ids are the ones this layer can mint itself."""
        return isinstance(self.value, int)

    def to_wire(self) -> Union[int, str]:
        return self.value

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, (int, str)) and not isinstance(other, bool):
            try:
                other = EntityId(other)
            except TypeError:
                return NotImplemented
        if not isinstance(other, EntityId):
            return NotImplemented
        return self.value == other.value

    def __hash__(self) -> int:
        return hash(self.value)

    def __str__(self) -> str:
        return str(self.value)

    def __repr__(self) -> str:
        return f"EntityId({self.value!r})"


def field_names(entity_type) -> List[str]:
    return [f.name for f in fields(entity_type)]


# =============================================================================
# CATALOG
# =============================================================================

@dataclass
class Category:
    title: str
    slug: str = ""
    image: str = ""
    description: str = ""
    order: int = 0
    is_active: bool = True
    id: Optional[EntityId] = None
    created_at: Optional[datetime] = None


@dataclass
class Product:
    name: str
    price: float = 0.0
    description: str = ""
    category_id: Optional[EntityId] = None
    category_name: str = ""
    image_urls: List[str] = field(default_factory=list)
    stock: int = 0
    features: List[str] = field(default_factory=list)
    id: Optional[EntityId] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# =============================================================================
# SHOPS & HOMEPAGE
# =============================================================================

@dataclass
class Coordinates:
    lat: float
    lng: float


@dataclass
class Shop:
    title: str
    address: str = ""
    description: str = ""
    image_url: str = ""
    phone: str = ""
    email: str = ""
    working_hours: str = ""
    coordinates: Optional[Coordinates] = None
    id: Optional[EntityId] = None
    created_at: Optional[datetime] = None


@dataclass
class Slide:
    image: str
    title: str = ""
    description: str = ""
    link: str = ""
    order: int = 0
    is_active: bool = True
    id: Optional[EntityId] = None
    created_at: Optional[datetime] = None


# =============================================================================
# CONTACTS
# =============================================================================

@dataclass
class SocialLink:
    name: str
    url: str
    icon: str = ""


@dataclass
class AboutSection:
    title: str
    content: str = ""


@dataclass
class ContactInfo:
    phone: str = ""
    email: str = ""
    office: str = ""
    working_hours: str = ""
    map_embed: str = ""
    social: List[SocialLink] = field(default_factory=list)
    about_sections: List[AboutSection] = field(default_factory=list)
    id: Optional[EntityId] = None
    updated_at: Optional[datetime] = None


@dataclass
class HomepageSettings:
    """Hero texts, banner images and the categories featured on the home page."""
    title: str = ""
    description: str = ""
    banner_images: List[str] = field(default_factory=list)
    featured_categories: List[EntityId] = field(default_factory=list)
    id: Optional[EntityId] = None
    updated_at: Optional[datetime] = None


@dataclass
class ContactSubmission:
    name: str
    phone: str
    email: str = ""
    message: str = ""
    agree: bool = False
    status: str = "new"
    submitted_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "phone": self.phone,
            "email": self.email,
            "message": self.message,
            "agree": self.agree,
            "status": self.status,
            "date": self.submitted_at.isoformat(),
        }
