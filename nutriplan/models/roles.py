from enum import Enum
from typing import Iterable, Optional


class Role(str, Enum):
    USER = "user"
    NUTRITIONIST = "nutritionist"
    ADMIN = "admin"

    @property
    def rank(self) -> int:
        return _RANKS[self]

    def __lt__(self, other):
        if not isinstance(other, Role):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, Role):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, Role):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, Role):
            return NotImplemented
        return self.rank >= other.rank

    def at_least(self, other: "Role") -> bool:
        return self >= other

    @classmethod
    def parse(cls, value) -> Optional["Role"]:
        """Return the Role for a stored value, or None if it isn't one we know."""
        if isinstance(value, Role):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            return None


_RANKS = {
    Role.USER: 0,
    Role.NUTRITIONIST: 1,
    Role.ADMIN: 2,
}


def highest_role(values: Iterable) -> Role:
    """Highest known role among `values`; users without any role are plain users."""
    roles = [role for role in (Role.parse(v) for v in values) if role is not None]
    if not roles:
        return Role.USER
    return max(roles)
