"""Response rewriting: stored references -> retrieval URLs.

Walks an arbitrary response value and replaces every stored reference with
the URL a client should fetch. Traversal rules:

- dicts, lists and tuples are always descended into
- instances of registered types are projected to plain data and descended
- everything else (transport handles, sockets, arbitrary objects) is
  returned untouched
- each container is collected at most once per rewrite, so cyclic graphs
  terminate and shared sub-objects are resolved once

A rewrite runs in three steps: collect reference leaves, resolve them
concurrently, write the URLs back. The input is only modified in the last
step. Dicts and lists are rewritten in place, tuples are rebuilt and
registered objects are replaced by their projection. An object met again
while it is still being written back is a cycle point and stays unchanged.

A reference that fails to resolve is logged and left as-is; it never fails
the whole rewrite.
"""

import asyncio
import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

from pydantic import BaseModel

from minio_access.core.errors import ResolutionError
from minio_access.observability.logger import get_logger

from .references import DescriptorRegistry, parse_reference
from .schemas import ObjectReference, ReferenceField, TypeDescriptor

logger = get_logger(__name__)


class UrlResolver(Protocol):
    """Anything that turns bucket/object into a URL (normally ObjectStore)."""

    async def get_presigned_url(self, bucket_name: str, object_name: str) -> str: ...


@dataclass
class RewriteReport:
    """Outcome of one rewrite invocation."""

    resolved: int = 0
    failures: list[ResolutionError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


@dataclass
class _PendingLeaf:
    """A reference found at (container, key) during collection."""

    slot: tuple[int, Any]
    ref: ObjectReference
    path: str


class _Traversal:
    """State scoped to a single top-level rewrite call."""

    def __init__(self, max_concurrency: int | None):
        self.collected: set[int] = set()
        self.projections: dict[int, dict[str, Any]] = {}
        self.pending: list[_PendingLeaf] = []
        self.urls: dict[tuple[int, Any], str] = {}
        self.rewritten: dict[int, Any] = {}
        self.report = RewriteReport()
        self.semaphore = asyncio.Semaphore(max_concurrency) if max_concurrency else None


def _child_path(path: str, key: Any) -> str:
    return f"{path}.{key}" if path else str(key)


def _index_path(path: str, index: int) -> str:
    return f"{path}[{index}]"


def project(value: Any) -> dict[str, Any]:
    """Shallow plain-data view of a registered object."""
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return dict(to_dict())
    if isinstance(value, BaseModel):
        return dict(value)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: getattr(value, f.name) for f in dataclasses.fields(value)}
    return dict(vars(value))


class ResponseRewriter:
    """Rewrites stored references in response payloads into URLs."""

    def __init__(
        self,
        resolver: UrlResolver,
        registry: DescriptorRegistry | None = None,
        mapping_fields: Mapping[str, ReferenceField] | None = None,
        max_concurrency: int | None = None,
    ):
        """Initialize rewriter.

        Args:
            resolver: Produces URLs for references
            registry: Registered types and their reference fields
            mapping_fields: Reference fields declared for plain dict payloads
            max_concurrency: Cap on simultaneous resolutions (default: unbounded)
        """
        if max_concurrency is not None and max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self._resolver = resolver
        self.registry = registry if registry is not None else DescriptorRegistry()
        self._mapping_descriptor = TypeDescriptor(fields=dict(mapping_fields or {}))
        self._max_concurrency = max_concurrency

    async def rewrite(self, value: Any) -> Any:
        """Rewrite a response value (single object or sequence of objects).

        Returns:
            The same shape with resolved URLs substituted
        """
        result, _ = await self.rewrite_with_report(value)
        return result

    async def rewrite_with_report(self, value: Any) -> tuple[Any, RewriteReport]:
        """Like rewrite(), also returning resolution counts and failures."""
        state = _Traversal(self._max_concurrency)
        # holder gives a top-level string a slot like any other leaf
        holder = [value]

        self._collect_child(holder, 0, value, "", None, state)
        await asyncio.gather(*[self._resolve_leaf(leaf, state) for leaf in state.pending])
        result = self._apply_child(holder, 0, value, state)

        if state.report.failures:
            logger.info(
                f"Rewrite finished with {len(state.report.failures)} unresolved reference(s)",
                extra_data={
                    "resolved": state.report.resolved,
                    "failed_paths": [e.field_path for e in state.report.failures],
                },
            )
        return result, state.report

    def _collect(
        self,
        value: Any,
        path: str,
        declared: ReferenceField | None,
        state: _Traversal,
    ) -> None:
        if id(value) in state.collected:
            return

        if isinstance(value, dict):
            state.collected.add(id(value))
            self._collect_fields(value, path, self._mapping_descriptor, state)
        elif isinstance(value, (list, tuple)):
            state.collected.add(id(value))
            for i, item in enumerate(value):
                self._collect_child(value, i, item, _index_path(path, i), declared, state)
        else:
            descriptor = self.registry.get(type(value))
            if descriptor is None:
                return
            state.collected.add(id(value))
            projection = project(value)
            state.projections[id(value)] = projection
            self._collect_fields(projection, path, descriptor, state)

    def _collect_fields(
        self,
        mapping: dict[Any, Any],
        path: str,
        descriptor: TypeDescriptor,
        state: _Traversal,
    ) -> None:
        for key, item in mapping.items():
            declared = descriptor.lookup(key) if isinstance(key, str) else None
            self._collect_child(mapping, key, item, _child_path(path, key), declared, state)

    def _collect_child(
        self,
        container: Any,
        key: Any,
        item: Any,
        path: str,
        declared: ReferenceField | None,
        state: _Traversal,
    ) -> None:
        if item is None:
            return
        if isinstance(item, str):
            ref = parse_reference(item, declared)
            if ref is not None:
                state.pending.append(_PendingLeaf(slot=(id(container), key), ref=ref, path=path))
            return
        self._collect(item, path, declared, state)

    async def _resolve_leaf(self, leaf: _PendingLeaf, state: _Traversal) -> None:
        ref = leaf.ref
        try:
            if state.semaphore is not None:
                async with state.semaphore:
                    url = await self._resolver.get_presigned_url(ref.bucket_name, ref.object_name)
            else:
                url = await self._resolver.get_presigned_url(ref.bucket_name, ref.object_name)
        except Exception as e:
            if isinstance(e, ResolutionError):
                error = e
            else:
                error = ResolutionError(
                    f"Failed to resolve {ref.path}: {e}",
                    bucket_name=ref.bucket_name,
                    object_name=ref.object_name,
                    original_error=e,
                )
            error.field_path = leaf.path
            state.report.failures.append(error)
            logger.resolution_failed(leaf.path, str(e), ref.bucket_name, ref.object_name)
            return

        state.urls[leaf.slot] = url
        state.report.resolved += 1

    def _apply(self, value: Any, state: _Traversal) -> Any:
        if id(value) in state.rewritten:
            return state.rewritten[id(value)]

        if isinstance(value, (dict, list)):
            state.rewritten[id(value)] = value
            keys = list(value.keys()) if isinstance(value, dict) else range(len(value))
            for key in keys:
                value[key] = self._apply_child(value, key, value[key], state)
            return value

        if isinstance(value, tuple):
            # the original stands in while rebuilding, so re-entry is a cycle point
            state.rewritten[id(value)] = value
            items = [self._apply_child(value, i, item, state) for i, item in enumerate(value)]
            rebuilt = value._make(items) if hasattr(value, "_make") else tuple(items)
            state.rewritten[id(value)] = rebuilt
            return rebuilt

        projection = state.projections.get(id(value))
        if projection is None:
            return value

        state.rewritten[id(value)] = value
        for key in list(projection.keys()):
            projection[key] = self._apply_child(projection, key, projection[key], state)
        state.rewritten[id(value)] = projection
        return projection

    def _apply_child(self, container: Any, key: Any, item: Any, state: _Traversal) -> Any:
        slot = (id(container), key)
        if slot in state.urls:
            return state.urls[slot]
        if item is None or isinstance(item, str):
            return item
        return self._apply(item, state)
