# =============================================================================
# komfort_core/catalog/homepage_store.py
# Home page settings - hero texts, banners and featured categories
# =============================================================================

from __future__ import annotations
from typing import Any, Dict, List

from komfort_core.errors import ValidationError
from komfort_core.offline.single_record_store import SingleRecordStore

from .defaults import default_homepage_settings
from .images import is_data_uri
from .mappers import HomepageSettingsMapper, as_id, as_str_list, decode_json
from .models import EntityId, HomepageSettings


class HomepageSettingsStore(SingleRecordStore[HomepageSettings]):
    entity_type = HomepageSettings
    mapper = HomepageSettingsMapper
    cache_key = "homepage_settings"

    def default_record(self) -> HomepageSettings:
        return default_homepage_settings()

    def coerce(self, changes: Dict[str, Any]) -> Dict[str, Any]:
        if "title" in changes:
            title = (changes["title"] or "").strip()
            if not title:
                raise ValidationError("Home page title is required", field="title")
            changes["title"] = title
        if "description" in changes:
            changes["description"] = (changes["description"] or "").strip()
        if "banner_images" in changes:
            banners: List[str] = []
            for ref in as_str_list(changes["banner_images"]):
                ref = ref.strip()
                if is_data_uri(ref):
                    raise ValidationError("Banner images must be uploaded, not inlined", field="banner_images")
                if ref not in banners:
                    banners.append(ref)
            changes["banner_images"] = banners
        if "featured_categories" in changes:
            raw = decode_json(changes["featured_categories"], default=[])
            featured: List[EntityId] = []
            for item in raw if isinstance(raw, list) else [raw]:
                eid = as_id(item)
                if eid is None:
                    raise ValidationError(
                        "Featured categories must be category ids",
                        field="featured_categories",
                        value=repr(item),
                    )
                if eid not in featured:
                    featured.append(eid)
            changes["featured_categories"] = featured
        return changes

    def feature(self, category_id: Any) -> HomepageSettings:
        featured = self.get().featured_categories
        eid = EntityId.of(category_id)
        if eid in featured:
            return self.get()
        return self.update({"featured_categories": featured + [eid]})

    def unfeature(self, category_id: Any) -> HomepageSettings:
        eid = EntityId.of(category_id)
        featured = [item for item in self.get().featured_categories if item != eid]
        return self.update({"featured_categories": featured})
