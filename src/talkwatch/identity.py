"""In-memory user directory used as the default identity resolver."""

import ipaddress
import re
from typing import Dict, Iterable, Optional, Set

from talkwatch.models import User

# Characters that can never appear in a user name
INVALID_NAME_CHARS = re.compile(r"[#<>\[\]|{}/:@\n]")


def is_ip_address(name: str) -> bool:
    """Check whether a name is an IPv4 or IPv6 address."""
    try:
        ipaddress.ip_address(name.strip())
    except ValueError:
        return False
    return True


class UserDirectory:
    """Registry of accounts keyed by canonical name."""

    def __init__(self, users: Optional[Iterable[User]] = None) -> None:
        """Initialize with optional existing accounts."""
        self._by_name: Dict[str, User] = {}
        self._by_id: Dict[int, User] = {}
        for user in users or []:
            self.add_user(user)

    def add_user(self, user: User) -> User:
        """Register an account under its canonical name."""
        canonical = self.get_canonical_name(user.name)
        if canonical is None:
            raise ValueError(f"Invalid user name: {user.name!r}")
        stored = user.model_copy(update={"name": canonical})
        self._by_name[canonical] = stored
        if stored.id:
            self._by_id[stored.id] = stored
        return stored

    def create_user(self, user_id: int, name: str, rights: Optional[Set[str]] = None) -> User:
        """Create and register an account."""
        return self.add_user(User(id=user_id, name=name, rights=rights or set()))

    def is_ip(self, name: str) -> bool:
        """Check whether a name is an anonymous (IP address) identity."""
        return is_ip_address(name)

    def get_canonical_name(self, name: str) -> Optional[str]:
        """Normalize a user name, or return None if it cannot be a user name."""
        name = re.sub(r"[\s_]+", " ", name).strip()
        if not name:
            return None
        if self.is_ip(name):
            return name.upper()
        if INVALID_NAME_CHARS.search(name):
            return None
        return name[0].upper() + name[1:]

    def get_user_id(self, name: str) -> int:
        """Return the account id for a name, 0 if there is no such account."""
        canonical = self.get_canonical_name(name)
        if canonical is None:
            return 0
        user = self._by_name.get(canonical)
        return user.id if user else 0

    def get_user(self, user_id: int) -> Optional[User]:
        """Get an account by id."""
        return self._by_id.get(user_id)

    def get_user_by_name(self, name: str) -> User:
        """Get an account by name, or an unregistered user with id 0."""
        canonical = self.get_canonical_name(name) or name
        user = self._by_name.get(canonical)
        return user if user else User(id=0, name=canonical)

    def is_allowed(self, user: User, right: str) -> bool:
        """Check whether a user holds a right."""
        return right in user.rights
