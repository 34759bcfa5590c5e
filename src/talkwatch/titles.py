"""Page titles and namespaces as used by wiki links."""

import re
from enum import IntEnum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class Namespace(IntEnum):
    """Namespaces relevant to discussion parsing."""
    SPECIAL = -1
    MAIN = 0
    TALK = 1
    USER = 2
    USER_TALK = 3
    PROJECT = 4
    PROJECT_TALK = 5


NAMESPACE_NAMES = {
    Namespace.SPECIAL: "Special",
    Namespace.MAIN: "",
    Namespace.TALK: "Talk",
    Namespace.USER: "User",
    Namespace.USER_TALK: "User talk",
    Namespace.PROJECT: "Project",
    Namespace.PROJECT_TALK: "Project talk",
}

# Lowercase, space-separated prefixes that resolve to a namespace
NAMESPACE_ALIASES = {
    "special": Namespace.SPECIAL,
    "talk": Namespace.TALK,
    "user": Namespace.USER,
    "user talk": Namespace.USER_TALK,
    "project": Namespace.PROJECT,
    "project talk": Namespace.PROJECT_TALK,
}

INVALID_TITLE_CHARS = re.compile(r"[\[\]{}|<>\n]")


class Title(BaseModel):
    """A normalized page title."""

    model_config = ConfigDict(frozen=True)

    namespace: Namespace = Namespace.MAIN
    text: str

    @property
    def db_key(self) -> str:
        """Title text in storage form (underscores instead of spaces)."""
        return self.text.replace(" ", "_")

    @property
    def prefixed_text(self) -> str:
        """Title text including the namespace prefix."""
        prefix = NAMESPACE_NAMES[self.namespace]
        return f"{prefix}:{self.text}" if prefix else self.text

    @property
    def has_subpage(self) -> bool:
        return "/" in self.text

    def is_special(self, name: str) -> bool:
        """Check whether this title is the given special page."""
        if self.namespace != Namespace.SPECIAL:
            return False
        return self.text.split("/", 1)[0].lower() == name.lower()

    @classmethod
    def new_from_text(
        cls, text: str, default_namespace: Namespace = Namespace.MAIN
    ) -> Optional["Title"]:
        """Parse link-style text into a Title, or None if it is not a valid title."""
        text = text.split("#", 1)[0]
        text = re.sub(r"[\s_]+", " ", text).strip()
        namespace = default_namespace
        if text.startswith(":"):
            text = text.lstrip(":").strip()
            namespace = Namespace.MAIN

        if ":" in text:
            prefix, rest = text.split(":", 1)
            alias = NAMESPACE_ALIASES.get(prefix.strip().lower())
            if alias is not None:
                namespace = alias
                text = rest.strip()

        if not text or INVALID_TITLE_CHARS.search(text):
            return None

        return cls(namespace=namespace, text=text[0].upper() + text[1:])

    def __str__(self) -> str:
        return self.prefixed_text
