"""Per-CDN image URL upgrades to the highest available resolution."""

import re
from typing import Optional
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

# Nike/Jordan product shots are addressable by style code
BRAND_CDN_TEMPLATES = {
    "Nike": "https://static.nike.com/a/images/t_PDP_1728_v1/f_auto,q_auto:eco/{style_code}.png",
    "Jordan": "https://static.nike.com/a/images/t_PDP_1728_v1/f_auto,q_auto:eco/{style_code}.png",
}


def _replace_query(url: str, updates: dict, remove: tuple = ()) -> str:
    parsed = urlparse(url)
    params = [(k, v) for k, v in parse_qsl(parsed.query, keep_blank_values=True) if k not in remove]
    keys = {k for k, _ in params}
    params = [(k, updates.get(k, v)) for k, v in params]
    params.extend((k, v) for k, v in updates.items() if k not in keys)
    return urlunparse(parsed._replace(query=urlencode(params)))


def upgrade_nike(url: str) -> str:
    url = re.sub(r"t_PDP_\d+_v\d+", "t_PDP_1728_v1", url)
    url = url.replace("t_default", "t_PDP_1728_v1")
    return url.replace("q_auto:eco", "q_auto:best")


def upgrade_end_clothing(url: str) -> str:
    return _replace_query(url, {"w": "1200"}, remove=("h",))


def upgrade_new_balance(url: str) -> str:
    url = re.sub(r"wid=\d+", "wid=1600", url)
    return re.sub(r"hei=\d+", "hei=1600", url)


def upgrade_adidas(url: str) -> str:
    return re.sub(r"/w_\d+", "/w_1200", url)


def upgrade_mr_porter(url: str) -> str:
    url = url.replace("_in_pp.jpg", "_in_xl.jpg")
    return url.split("?", 1)[0]


def upgrade_generic(url: str) -> str:
    """Bump common width/quality query params on unknown CDNs."""
    parsed = urlparse(url)
    if not parsed.query:
        return url
    params = dict(parse_qsl(parsed.query, keep_blank_values=True))
    updates = {}
    for key in ("w", "wid", "width"):
        if key in params:
            updates[key] = "1200"
    if params.get("q", "").isdigit() and int(params["q"]) < 90:
        updates["q"] = "95"
    if not updates:
        return url
    return _replace_query(url, updates)


def upgrade_image_url(url: Optional[str]) -> str:
    """Rewrite a store image URL to its highest-resolution variant."""
    if not url:
        return ""
    if "static.nike.com" in url:
        return upgrade_nike(url)
    if "endclothing" in url or "media.end" in url:
        return upgrade_end_clothing(url)
    if "nb.scene7.com" in url:
        return upgrade_new_balance(url)
    if "assets.adidas.com" in url:
        return upgrade_adidas(url)
    if "mrporter.com" in url or "net-a-porter.com" in url:
        return upgrade_mr_porter(url)
    return upgrade_generic(url)


def brand_cdn_url(brand: str, style_code: str) -> Optional[str]:
    """Brand-hosted image URL for a style code, if the brand has one."""
    template = BRAND_CDN_TEMPLATES.get(brand or "")
    if not template or not style_code:
        return None
    return template.format(style_code=style_code)
