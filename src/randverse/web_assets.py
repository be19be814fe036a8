from __future__ import annotations

from urllib.parse import quote


def build_favicon_svg(
    label: str = "✝",
    *,
    background: str = "#fafafa",
    text_color: str = "#4caf50",
    border_color: str | None = "#3333331a",
) -> str:
    """Return a square SVG badge with a one or two character label."""
    normalized = (label or "✝").strip() or "✝"
    normalized = normalized[:2]
    font_size = "26" if len(normalized) > 1 else "34"
    border_markup = (
        f'<rect x="1.5" y="1.5" width="61" height="61" rx="12" ry="12" fill="none" '
        f'stroke="{border_color}" stroke-width="1.5" />'
        if border_color
        else ""
    )
    return f"""<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 64 64" role="img" aria-label="{normalized} icon">
  <rect width="64" height="64" rx="14" ry="14" fill="{background}" />
  {border_markup}
  <text x="32" y="43" text-anchor="middle" font-family="Georgia, 'Times New Roman', serif"
        font-size="{font_size}" font-weight="700" fill="{text_color}">{normalized}</text>
</svg>"""


def favicon_data_url(label: str = "✝", **colors: str | None) -> str:
    return "data:image/svg+xml," + quote(build_favicon_svg(label, **colors))


FAVICON_SVG = build_favicon_svg()
FAVICON_URL = favicon_data_url()


__all__ = ["FAVICON_SVG", "FAVICON_URL", "build_favicon_svg", "favicon_data_url"]
