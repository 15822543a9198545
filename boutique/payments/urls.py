"""
Résolution des URLs de retour Stripe (success/cancel).

Stratégies pures, essayées dans un ordre fixe; la première qui renvoie un résultat gagne:
  1) URLs explicites envoyées par le front
  2) Referer de la page d'origine (/en/... -> pages anglaises)
  3) SITE_URL configuré + locale du corps
  4) origine de repli configurée (ne renvoie jamais None)
"""
from dataclasses import dataclass
from typing import Callable, NamedTuple, Optional, Tuple
from urllib.parse import urlsplit

ENGLISH_PREFIX = "/en"


class RedirectUrls(NamedTuple):
    success_url: str
    cancel_url: str


@dataclass(frozen=True)
class UrlContext:
    referer: Optional[str] = None
    locale: Optional[str] = None
    success_url: Optional[str] = None
    cancel_url: Optional[str] = None
    site_url: str = ""
    fallback_origin: str = ""


def _urls_for(origin: str, english: bool) -> RedirectUrls:
    prefix = ENGLISH_PREFIX if english else ""
    return RedirectUrls(
        success_url=f"{origin}{prefix}/success/",
        cancel_url=f"{origin}{prefix}/cancel/",
    )

def _is_english(locale: Optional[str]) -> bool:
    return (locale or "fr").lower().startswith("en")

def explicit_urls(ctx: UrlContext) -> Optional[RedirectUrls]:
    if ctx.success_url and ctx.cancel_url:
        return RedirectUrls(str(ctx.success_url), str(ctx.cancel_url))
    return None

def referer_urls(ctx: UrlContext) -> Optional[RedirectUrls]:
    if not ctx.referer:
        return None
    try:
        parts = urlsplit(ctx.referer)
    except ValueError:
        return None
    if parts.scheme not in ("http", "https") or not parts.netloc:
        return None
    origin = f"{parts.scheme}://{parts.netloc}"
    return _urls_for(origin, (parts.path or "").startswith(ENGLISH_PREFIX + "/"))

def site_url_urls(ctx: UrlContext) -> Optional[RedirectUrls]:
    site = (ctx.site_url or "").rstrip("/")
    if not site:
        return None
    return _urls_for(site, _is_english(ctx.locale))

def fallback_origin_urls(ctx: UrlContext) -> Optional[RedirectUrls]:
    return _urls_for((ctx.fallback_origin or "").rstrip("/"), _is_english(ctx.locale))


RESOLVERS: Tuple[Callable[[UrlContext], Optional[RedirectUrls]], ...] = (
    explicit_urls,
    referer_urls,
    site_url_urls,
    fallback_origin_urls,
)

def resolve_redirect_urls(ctx: UrlContext) -> RedirectUrls:
    for resolver in RESOLVERS:
        urls = resolver(ctx)
        if urls is not None:
            return urls
    return fallback_origin_urls(ctx)
