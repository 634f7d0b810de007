"""
Resolution of links found on a page into normalized absolute URLs.
"""

from urllib.parse import urljoin, urlsplit, urlunsplit


class URLResolveError(ValueError):
    """Base class for links that cannot be turned into an absolute URL."""
    pass


class InvalidBase(URLResolveError):
    """The base URL is unparsable or not absolute."""
    pass


class InvalidCandidate(URLResolveError):
    """The candidate link is unparsable."""
    pass


class NotAbsolute(URLResolveError):
    """Resolution succeeded but did not produce an absolute URL."""
    pass


def _normalize(url: str) -> str:
    """Lowercase scheme and host and drop the fragment."""
    parts = urlsplit(url)
    # Userinfo is case-sensitive
    userinfo, at, hostport = parts.netloc.rpartition('@')
    return urlunsplit((
        parts.scheme.lower(),
        userinfo + at + hostport.lower(),
        parts.path,
        parts.query,
        ''  # Remove fragment
    ))


def resolve(base: str, candidate: str) -> str:
    """
    Resolve ``candidate`` against the absolute URL ``base``.

    Absolute candidates pass through, relative ones are merged with the
    base path and ``.``/``..`` segments are removed.

    Raises:
        InvalidBase: base cannot be parsed or has no scheme
        InvalidCandidate: candidate cannot be parsed
        NotAbsolute: the resolved URL still has no scheme
    """
    candidate = candidate.strip()

    try:
        base_parts = urlsplit(base)
    except ValueError as e:
        raise InvalidBase(f"invalid base url {base!r}: {e}") from e
    if not base_parts.scheme:
        raise InvalidBase(f"base url {base!r} is not absolute")

    try:
        urlsplit(candidate)
        joined = urljoin(base, candidate)
        resolved = urlsplit(joined)
    except ValueError as e:
        raise InvalidCandidate(f"invalid link {candidate!r}: {e}") from e

    if not resolved.scheme:
        raise NotAbsolute(f"link {candidate!r} does not resolve to an absolute url")

    return _normalize(joined)
