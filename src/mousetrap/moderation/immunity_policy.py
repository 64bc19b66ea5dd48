"""Who is exempt from being banned by the mousetrap."""

from __future__ import annotations

from typing import AbstractSet, Iterable, Protocol

MANAGE_MESSAGES = "manage_messages"


class ImmunityPolicy(Protocol):
    def is_immune(self, capabilities: AbstractSet[str]) -> bool: ...


class CapabilityImmunityPolicy:
    """
    Immune when the author holds any of the configured permission flags.

    Capability names are py-cord permission flag names, e.g. ``manage_messages``
    or ``administrator``.
    """

    __slots__ = ("immune_capabilities",)

    def __init__(self, immune_capabilities: Iterable[str] = (MANAGE_MESSAGES,)) -> None:
        self.immune_capabilities = frozenset(immune_capabilities)

    def is_immune(self, capabilities: AbstractSet[str]) -> bool:
        return not self.immune_capabilities.isdisjoint(capabilities)

    def __repr__(self) -> str:
        return f"CapabilityImmunityPolicy({sorted(self.immune_capabilities)!r})"


default_policy = CapabilityImmunityPolicy()


def is_immune(capabilities: AbstractSet[str]) -> bool:
    """True iff the capability set includes the manage messages permission."""
    return default_policy.is_immune(capabilities)
