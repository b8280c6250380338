# =============================================================================
# komfort_core/catalog/contact_store.py
# Contact Info Store - the single company contact record
# =============================================================================
"""
ContactInfoStore keeps exactly one ContactInfo record.

Partial updates never wipe the social links by omission: when `social`
is not supplied, the list stored remotely (or, failing that, in memory)
is carried over. Passing `social=[]` explicitly clears it.
"""

from __future__ import annotations
import dataclasses
from typing import Any, Dict, List, Optional

from komfort_core.errors import ValidationError
from komfort_core.offline.single_record_store import SingleRecordStore

from .defaults import default_contact_info
from .mappers import ContactInfoMapper
from .models import ContactInfo, SocialLink


class ContactInfoStore(SingleRecordStore[ContactInfo]):
    entity_type = ContactInfo
    mapper = ContactInfoMapper
    cache_key = "contact_info"

    def default_record(self) -> ContactInfo:
        return default_contact_info()

    # =========================================================================
    # WRITES
    # =========================================================================

    def coerce(self, changes: Dict[str, Any]) -> Dict[str, Any]:
        if "social" in changes:
            changes["social"] = ContactInfoMapper.coerce_social(changes["social"] or [])
        if "about_sections" in changes:
            changes["about_sections"] = ContactInfoMapper.coerce_about_sections(changes["about_sections"] or [])
        for name in ("phone", "email", "office", "working_hours", "map_embed"):
            if name in changes:
                changes[name] = (changes[name] or "").strip()
        return changes

    def carry_over(self, changes: Dict[str, Any]) -> Dict[str, Any]:
        if "social" in changes:
            return changes
        social: Optional[List[SocialLink]] = None
        if self.is_remote:
            social = self.gateway.fetch_social()
        if social is None:
            social = self.get().social
        changes["social"] = social
        return changes

    # =========================================================================
    # SOCIAL LINKS
    # =========================================================================

    def _check_index(self, social: List[SocialLink], index: int) -> None:
        if not 0 <= index < len(social):
            raise ValidationError(
                f"No social link at position {index}",
                field="social",
                value=index,
            )

    def add_social(self, name: str, url: str, icon: str = "") -> ContactInfo:
        if not (url or "").strip():
            raise ValidationError("Social link URL is required", field="url")
        social = self.get().social + [SocialLink(name=name.strip(), url=url.strip(), icon=icon.strip())]
        return self.update({"social": social})

    def remove_social(self, index: int) -> ContactInfo:
        social = self.get().social
        self._check_index(social, index)
        del social[index]
        return self.update({"social": social})

    def update_social(self, index: int, changes: Dict[str, Any]) -> ContactInfo:
        social = self.get().social
        self._check_index(social, index)
        unknown = set(changes) - {"name", "url", "icon"}
        if unknown:
            raise ValidationError(f"Unknown social link field(s): {', '.join(sorted(unknown))}", field="social")
        social[index] = dataclasses.replace(social[index], **changes)
        return self.update({"social": social})
