"""
Locale normalization - project a bilingual CMS entry onto one locale.

The GraphQL queries fetch every localized field twice under aliases
(``title_en`` / ``title_fr``). The mappers only understand single-locale
entries, so each localized field is resolved here:

    F = F_<locale>  if present and non-empty
        F           otherwise (absent when neither exists)

Non-localized fields (sys, images, metadata) pass through unchanged.
"""

from typing import Any

from content_spine.models import Locale, NormalizedEntry, RawEntry

LOCALIZED_FIELDS = ("title", "slug", "description")


def _is_present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, (str, list, dict)):
        return len(value) > 0
    return True


def normalize_for_locale(entry: RawEntry, locale: Locale | str) -> NormalizedEntry:
    """Return a single-locale copy of ``entry``. Pure; the input is not modified."""
    locale = Locale(locale)
    normalized: NormalizedEntry = dict(entry)

    for name in LOCALIZED_FIELDS:
        localized = entry.get(f"{name}_{locale.value}")
        value = localized if _is_present(localized) else entry.get(name)
        if value is None:
            normalized.pop(name, None)
        else:
            normalized[name] = value

    normalized["locale"] = locale.cms_code
    return normalized
