"""Nudge addressing: patterns to session names, and session names back to addresses.

Address forms::

    mayor                     deacon
    <rig>/witness             <rig>/refinery
    <rig>/crew/<name>         <rig>/crew/*
    <rig>/polecats/<name>     <rig>/polecats/*
    <rig>/<name>              legacy polecat form
    */witness                 any rig, role kept

Session names are ``hq-mayor``, ``hq-deacon``, ``<prefix>-witness``,
``<prefix>-refinery``, ``<prefix>-crew-<name>`` and ``<prefix>-<name>`` for
polecats.  Polecat session names map back to the bare ``<rig>/<name>``
form, so ``<rig>/polecats/<name>`` does not survive a round trip.

Nothing here raises on bad input: unknown patterns match nothing and
unknown session names translate to "".
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import NamedTuple

from townhall.common.constants import DEACON_SESSION, MAYOR_SESSION
from townhall.fleet.agent import AgentSession
from townhall.fleet.prefixes import PrefixRegistry, default_registry
from townhall.fleet.topology import ROLE_DIRS, AgentType

WILDCARD = "*"

_CREW_TOKEN = "crew-"
_SINGLETON_ROLES = {
    AgentType.WITNESS.value: AgentType.WITNESS,
    AgentType.REFINERY.value: AgentType.REFINERY,
}
_NAMED_ROLES = {
    ROLE_DIRS[AgentType.CREW]: AgentType.CREW,
    ROLE_DIRS[AgentType.POLECAT]: AgentType.POLECAT,
}


class _Target(NamedTuple):
    kind: AgentType
    rig: str = ""
    name: str = ""

    @property
    def is_wildcard(self) -> bool:
        return WILDCARD in (self.rig, self.name)

    def matches(self, session: AgentSession) -> bool:
        if session.type is not self.kind:
            return False
        if self.kind.town_level:
            return True
        if self.rig != WILDCARD and session.rig != self.rig:
            return False
        return not self.kind.named or self.name in (WILDCARD, session.agent_name)


def _parse_address(address: str) -> _Target | None:
    parts = address.split("/")
    if len(parts) == 1:
        if address == AgentType.MAYOR.value:
            return _Target(AgentType.MAYOR)
        if address == AgentType.DEACON.value:
            return _Target(AgentType.DEACON)
        return None
    if not all(parts):
        return None

    if len(parts) == 2:
        rig, second = parts
        if second in _SINGLETON_ROLES:
            return _Target(_SINGLETON_ROLES[second], rig)
        if second in _NAMED_ROLES:
            # "<rig>/crew" with no member name
            return None
        return _Target(AgentType.POLECAT, rig, second)

    if len(parts) == 3:
        rig, role, name = parts
        kind = _NAMED_ROLES.get(role)
        if kind is None:
            return None
        return _Target(kind, rig, name)

    return None


def resolve_pattern(pattern: str, sessions: Iterable[AgentSession]) -> list[str]:
    """Return the names of all *sessions* the address pattern denotes.

    Order follows *sessions*.  An empty list means no match, whether the
    pattern was well-formed or not.
    """
    target = _parse_address(pattern)
    if target is None:
        return []
    return [s.name for s in sessions if target.matches(s)]


def _match_prefix(name: str, registry: PrefixRegistry) -> str | None:
    # Longest first so "gt" never claims "gt-x-witness".
    for prefix in sorted(registry.prefixes(), key=len, reverse=True):
        if name.startswith(prefix + "-"):
            return prefix
    return None


def parse_session_name(
    name: str,
    registry: PrefixRegistry | None = None,
) -> AgentSession | None:
    """Classify a raw session name, or return None if it is not a fleet session."""
    if name == MAYOR_SESSION:
        return AgentSession(name=name, type=AgentType.MAYOR)
    if name == DEACON_SESSION:
        return AgentSession(name=name, type=AgentType.DEACON)

    if registry is None:
        registry = default_registry()
    prefix = _match_prefix(name, registry)
    if prefix is None:
        return None
    rig = registry.lookup_rig(prefix)
    rest = name[len(prefix) + 1:]
    if not rest:
        return None

    if rest in _NAMED_ROLES:
        # "<prefix>-crew" names no member; addresses reject "<rig>/crew" too.
        return None
    if rest in _SINGLETON_ROLES:
        return AgentSession(name=name, type=_SINGLETON_ROLES[rest], rig=rig)
    if rest.startswith(_CREW_TOKEN):
        member = rest[len(_CREW_TOKEN):]
        if not member:
            return None
        return AgentSession(name=name, type=AgentType.CREW, rig=rig, agent_name=member)
    return AgentSession(name=name, type=AgentType.POLECAT, rig=rig, agent_name=rest)


def session_address(session: AgentSession) -> str:
    """Canonical human address of a classified session."""
    if session.type.town_level:
        return session.type.value
    if session.type is AgentType.CREW:
        return f"{session.rig}/{ROLE_DIRS[AgentType.CREW]}/{session.agent_name}"
    if session.type is AgentType.POLECAT:
        return f"{session.rig}/{session.agent_name}"
    return f"{session.rig}/{session.type.value}"


def session_name_to_address(name: str, registry: PrefixRegistry | None = None) -> str:
    """Translate a session name to its address; "" when unrecognised."""
    session = parse_session_name(name, registry)
    return session_address(session) if session else ""


def address_to_session_name(address: str, registry: PrefixRegistry | None = None) -> str:
    """Session name for a concrete address; "" for wildcards, unknown rigs, or junk."""
    target = _parse_address(address)
    if target is None or target.is_wildcard:
        return ""
    if target.kind is AgentType.MAYOR:
        return MAYOR_SESSION
    if target.kind is AgentType.DEACON:
        return DEACON_SESSION

    if registry is None:
        registry = default_registry()
    prefix = registry.lookup_prefix(target.rig)
    if prefix is None:
        return ""
    if target.kind is AgentType.CREW:
        return f"{prefix}-{_CREW_TOKEN}{target.name}"
    if target.kind is AgentType.POLECAT:
        return f"{prefix}-{target.name}"
    return f"{prefix}-{target.kind.value}"


def is_pattern(target: str) -> bool:
    return WILDCARD in target
