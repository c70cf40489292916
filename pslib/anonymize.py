"""
pslib.anonymize — Stable fake identities for exported user data.

An Anonymizer maps each real email address to a fabricated two-word name
(adjective + noun from coolname) and a matching address on the original
domain. The mapping lives on the instance, so one instance per run keeps a
user record and any separate record mentioning the same address consistent.
Addresses on configured safe domains (internal/test) are left untouched.
"""

import copy
import logging
from typing import Any, Callable, Dict, Iterable, List, NamedTuple, Optional

import coolname

logger = logging.getLogger(__name__)

SCRUBBED_ATTRIBUTES = ("given_name", "family_name", "email")

# Re-draws allowed before accepting a duplicate fabricated address
_MAX_DRAWS = 20


class AnonymizedIdentity(NamedTuple):
    first: str
    last: str
    email: str


def _two_word_name() -> List[str]:
    return coolname.generate(2)


def split_email(value: Any) -> Optional[tuple]:
    """Return (local, domain) for an email-shaped string, else None."""
    if not isinstance(value, str):
        return None
    local, sep, domain = value.strip().rpartition("@")
    if not sep or not local or "." not in domain:
        return None
    return local, domain


class Anonymizer:
    """
    Deterministic, memoized email → identity transform for one run.

    Args:
        safe_domains: Domains (and their subdomains) that are never transformed
        name_source: Callable returning a fresh [adjective, noun] pair
    """

    def __init__(
        self,
        safe_domains: Iterable[str] = (),
        name_source: Callable[[], List[str]] = _two_word_name,
    ):
        self.safe_domains = [d.lower().lstrip("@") for d in safe_domains if d]
        self.name_source = name_source
        self.mapping: Dict[str, AnonymizedIdentity] = {}
        self._issued_emails = set()

    def is_safe(self, email: str) -> bool:
        parts = split_email(email)
        if parts is None:
            return False
        domain = parts[1].lower()
        return any(domain == d or domain.endswith("." + d) for d in self.safe_domains)

    def identity_for(self, email: str) -> Optional[AnonymizedIdentity]:
        """
        Fabricated identity for ``email``.

        Returns None for safe-domain addresses and for values that are not
        email-shaped. Repeated calls with the same address return the same
        identity.
        """
        parts = split_email(email)
        if parts is None or self.is_safe(email):
            return None

        key = email.strip().lower()
        if key in self.mapping:
            return self.mapping[key]

        domain = parts[1]
        identity = None
        for _ in range(_MAX_DRAWS):
            first, last = self.name_source()[:2]
            identity = AnonymizedIdentity(first, last, f"{first}.{last}@{domain}")
            if identity.email.lower() not in self._issued_emails:
                break
        else:
            logger.warning("Could not draw a unique name for an address on %s", domain)

        self.mapping[key] = identity
        self._issued_emails.add(identity.email.lower())
        return identity

    def scrub_email(self, email: str) -> str:
        """Replacement address for ``email`` (unchanged when safe or not an email)."""
        identity = self.identity_for(email)
        return identity.email if identity else email

    def scrub_user(self, user: Dict[str, Any]) -> Dict[str, Any]:
        """
        Copy of a Cognito user record with personal fields replaced.

        ``given_name``, ``family_name`` and ``email`` attributes are rewritten
        from the identity of the ``email`` attribute (or of an email-shaped
        ``Username`` when that attribute is missing or empty). An email-shaped
        ``Username`` is scrubbed on its own address, whatever the ``email``
        attribute holds. All other fields pass through unchanged.
        """
        attributes = user.get("Attributes", []) or []
        email = next((a.get("Value") for a in attributes if a.get("Name") == "email"), None)
        if not email and split_email(user.get("Username")):
            email = user["Username"]

        identity = self.identity_for(email) if email else None
        scrubbed = copy.deepcopy(user)

        if identity is not None:
            replacements = {
                "given_name": identity.first,
                "family_name": identity.last,
                "email": identity.email,
            }
            for attr in scrubbed.get("Attributes", []) or []:
                if attr.get("Name") in replacements:
                    attr["Value"] = replacements[attr["Name"]]

        if split_email(scrubbed.get("Username")):
            scrubbed["Username"] = self.scrub_email(scrubbed["Username"])

        return scrubbed

    def scrub_users(self, users: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
        return [self.scrub_user(u) for u in users]
