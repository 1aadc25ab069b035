# sitebuilder/core/component_types.py

from __future__ import annotations

# Closed set accepted by the builder.
COMPONENT_TYPES: frozenset[str] = frozenset(
    {
        # layout
        "navbar",
        "hero",
        "footer",
        # content
        "features",
        "gallery",
        "rich_text",
        "image_text",
        "blog_grid",
        # social proof
        "testimonials",
        "team",
        "stats",
        # conversion
        "cta",
        "pricing",
        "contact_form",
        "faq",
        # media
        "video_embed",
        "map",
        # code
        "custom_html",
    }
)

# Types that need a plan flag and the builder.edit_html capability.
HTML_COMPONENT_TYPES: frozenset[str] = frozenset({"custom_html"})


def is_valid_component_type(value: str | None) -> bool:
    return (value or "") in COMPONENT_TYPES
