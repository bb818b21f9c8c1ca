"""
Root unions: the dispatch surface a handler covers.

A root aggregates effect families (:meth:`RootRegistry.declare`) or other
roots (:meth:`RootRegistry.combine`). Every input contributes exactly one
variant tag, and wrapping an operation into a root is reversible: the
wrapped value projects back to the very same operation.

Name uniqueness is checked while roots are defined, against the names held by
the :class:`RootRegistry` passed around explicitly. Nothing is registered in
module globals.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

from frozendict import frozendict

from algae.errors import (
    DuplicateRootDefinitionError,
    RegistrySealedError,
    UnhandledOperationError,
)
from algae.operations import Family, Operation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Variant:
    """An operation (or a nested variant) wrapped under one tag of a root.

    Usage:
        match variant:
            case Variant(tag="Console", value=Print(message)):
                ...
    """

    root: str
    tag: str
    value: Any

    __match_args__ = ("tag", "value")

    def unwrap(self) -> Operation:
        inner = self.value
        while isinstance(inner, Variant):
            inner = inner.value
        return inner


@dataclass(frozen=True, eq=False)
class Root:
    """A named union of families or of other roots.

    Roots are built by a :class:`RootRegistry`; construct them through it so
    their names are checked.
    """

    name: str
    variants: frozendict[str, Any]

    @property
    def tags(self) -> tuple[str, ...]:
        return tuple(self.variants)

    def families(self) -> Iterator[type[Family]]:
        """All families reachable from this root, depth first."""

        for source in self.variants.values():
            if isinstance(source, Root):
                yield from source.families()
            else:
                yield source

    def route(self, operation: Operation) -> tuple[str, ...] | None:
        """Tag path from this root down to the operation's family, or ``None``."""

        for tag, source in self.variants.items():
            if isinstance(source, Root):
                path = source.route(operation)
                if path is not None:
                    return (tag, *path)
            elif isinstance(operation, source):
                return (tag,)
        return None

    def covers(self, operation: Operation) -> bool:
        return self.route(operation) is not None

    def inject(self, operation: Operation) -> Variant:
        """Wrap ``operation`` into this root."""

        if not isinstance(operation, Operation):
            raise TypeError(f"Root {self.name!r} can only wrap operations, got {type(operation).__name__}")
        path = self.route(operation)
        if path is None:
            raise UnhandledOperationError(
                operation, f"{operation.family_name!r} is not part of root {self.name!r}"
            )
        return self._wrap(operation, path)

    def _wrap(self, operation: Operation, path: tuple[str, ...]) -> Variant:
        tag, rest = path[0], path[1:]
        source = self.variants[tag]
        if rest:
            return Variant(self.name, tag, source._wrap(operation, rest))
        return Variant(self.name, tag, operation)

    def project(self, variant: Variant) -> Operation:
        """Recover the operation wrapped by :meth:`inject`."""

        if not isinstance(variant, Variant) or variant.root != self.name:
            raise ValueError(f"{variant!r} is not a variant of root {self.name!r}")
        source = self.variants.get(variant.tag)
        if source is None:
            raise ValueError(f"Root {self.name!r} has no variant {variant.tag!r}")
        if isinstance(source, Root):
            return source.project(variant.value)
        if not isinstance(variant.value, source):
            raise ValueError(
                f"Variant {variant.tag!r} of root {self.name!r} holds "
                f"{type(variant.value).__name__}, not a {source.__name__} operation"
            )
        return variant.value

    def __repr__(self) -> str:
        return f"Root({self.name!r}, tags={list(self.variants)})"


class RootRegistry:
    """The set of root names defined so far.

    Declare every root through the same registry during program setup, then
    :meth:`seal` it; defining a root afterwards is an error.
    """

    def __init__(self) -> None:
        self._roots: dict[str, Root] = {}
        self._sealed = False

    @property
    def sealed(self) -> bool:
        return self._sealed

    def names(self) -> frozenset[str]:
        return frozenset(self._roots)

    def get(self, name: str) -> Root:
        return self._roots[name]

    def __contains__(self, name: object) -> bool:
        return name in self._roots

    def seal(self) -> None:
        self._sealed = True

    def declare(self, name: str, *families: type[Family]) -> Root:
        """Declare a root whose variants are ``families``, tagged by family name."""

        if not families:
            raise ValueError(f"Root {name!r} needs at least one family")
        variants: dict[str, type[Family]] = {}
        for fam in families:
            if not (isinstance(fam, type) and issubclass(fam, Family) and "_operations" in fam.__dict__):
                raise TypeError(f"Root {name!r}: {fam!r} is not an effect family")
            if fam.family_name in variants:
                raise DuplicateRootDefinitionError(
                    fam.family_name, f"family declared twice in root {name!r}"
                )
            variants[fam.family_name] = fam
        return self._register(name, variants)

    def combine(self, name: str, *roots: Root) -> Root:
        """Combine existing roots under a new root, one variant per input root."""

        if not roots:
            raise ValueError(f"Root {name!r} needs at least one root to combine")
        variants: dict[str, Root] = {}
        owners: dict[type[Family], str] = {}
        for root in roots:
            if not isinstance(root, Root):
                raise TypeError(f"Root {name!r}: cannot combine {type(root).__name__}")
            if root.name in variants:
                raise DuplicateRootDefinitionError(
                    root.name, f"combined twice into root {name!r}"
                )
            for fam in root.families():
                if fam in owners:
                    raise DuplicateRootDefinitionError(
                        fam.family_name,
                        f"family reachable through both {owners[fam]!r} and {root.name!r}",
                    )
                owners[fam] = root.name
            variants[root.name] = root
        return self._register(name, variants)

    def _register(self, name: str, variants: dict[str, Any]) -> Root:
        if self._sealed:
            raise RegistrySealedError(f"Cannot define root {name!r}: registry is sealed")
        if name in self._roots:
            raise DuplicateRootDefinitionError(name, "a root with this name is already defined")
        root = Root(name=name, variants=frozendict(variants))
        self._roots[name] = root
        logger.debug("Defined root %s with variants %s", name, list(variants))
        return root


__all__ = ["Root", "RootRegistry", "Variant"]
