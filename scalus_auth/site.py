"""
Per-organization provider site. The organization parameter is attacker-controlled in both
the authorize and callback requests, so it must resolve to a bare tenant host under the
configured domain before it is used as an OAuth2 base URL.
"""
import logging
import re
from functools import lru_cache

logger = logging.getLogger(__name__)

_SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)


@lru_cache(maxsize=32)
def _site_pattern(domain_suffix: str) -> re.Pattern:
    # One tenant label, then the suffix on a dot boundary; a port only if the suffix has one
    return re.compile(rf"[a-z0-9][a-z0-9-]*\.{re.escape(domain_suffix.lower())}")


def valid_host(host: str, domain_suffix: str) -> bool:
    """True if host is exactly '<label>.<domain_suffix>' with no scheme, userinfo, path or extra port."""
    return bool(_site_pattern(domain_suffix).fullmatch(host))


def authorize_site(organization: str | None, domain_suffix: str) -> str | None:
    """
    Resolve an organization to 'https://<host>', or None if it is not a valid tenant host.
    A bare label ('snowdevil') gets the domain suffix appended.
    """
    if not organization:
        return None
    host = organization.strip().lower()
    if "." not in host:
        host = f"{host}.{domain_suffix.lower()}"
    if not valid_host(host, domain_suffix):
        logger.warning("Rejected organization site %r (domain %s)", organization, domain_suffix)
        return None
    return f"https://{host}"


def normalize_site(site: str | None, domain_suffix: str) -> str | None:
    """
    Validate a full site URL supplied by a host setup hook. http:// is upgraded to https://;
    a single trailing slash is tolerated.
    """
    if not site:
        return None
    host = _SCHEME_RE.sub("", site.strip(), count=1).lower()
    if host.endswith("/"):
        host = host[:-1]
    if not valid_host(host, domain_suffix):
        logger.warning("Rejected configured site %r (domain %s)", site, domain_suffix)
        return None
    return f"https://{host}"


def organization_from_site(site: str) -> str:
    """Host part of a resolved site; used as the uid."""
    return _SCHEME_RE.sub("", site, count=1)
