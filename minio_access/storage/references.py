"""Stored-reference classification.

A string is a stored reference when it carries the storage:// scheme, or
when it sits in a field the caller declared as reference-bearing. Undeclared
plain strings are never guessed at, even when they contain '/'.
"""

from collections.abc import Callable, Iterable, Mapping
from typing import Any, TypeVar

from .schemas import STORAGE_SCHEME, ObjectReference, ReferenceField, TypeDescriptor

T = TypeVar("T", bound=type)


def _split_path(path: str) -> ObjectReference | None:
    bucket_name, sep, object_name = path.partition("/")
    bucket_name = bucket_name.strip()
    if not sep or not bucket_name or not object_name:
        return None
    return ObjectReference(bucket_name=bucket_name, object_name=object_name)


def parse_reference(value: Any, field: ReferenceField | None = None) -> ObjectReference | None:
    """Classify a value as a stored reference.

    Args:
        value: Candidate leaf value
        field: Declaration of the field holding the value, if any

    Returns:
        ObjectReference, or None if the value is not a reference
    """
    if not isinstance(value, str):
        return None

    raw = value.strip()
    if raw.startswith(STORAGE_SCHEME):
        return _split_path(raw[len(STORAGE_SCHEME):])

    if field is None or not raw:
        return None

    if field.bucket_name:
        object_name = raw.lstrip("/")
        if not object_name:
            return None
        return ObjectReference(bucket_name=field.bucket_name, object_name=object_name)

    # legacy bucket/object form, declared fields only
    return _split_path(raw)


def is_reference(value: Any, field: ReferenceField | None = None) -> bool:
    return parse_reference(value, field) is not None


class DescriptorRegistry:
    """Per-type declarations of reference-bearing fields.

    Only registered types (plus dicts, lists and tuples) are descended into
    when rewriting responses.

    Usage::

        registry = DescriptorRegistry()

        @registry.register("avatar", cover=ReferenceField(bucket_name="media"))
        class User(BaseModel):
            ...
    """

    def __init__(self) -> None:
        self._descriptors: dict[type, TypeDescriptor] = {}

    def register(
        self,
        *field_names: str,
        **fields: ReferenceField,
    ) -> Callable[[T], T]:
        """Decorator registering a type and its reference fields."""

        def decorator(cls: T) -> T:
            self.add(cls, field_names, fields)
            return cls

        return decorator

    def add(
        self,
        cls: type,
        field_names: Iterable[str] = (),
        fields: Mapping[str, ReferenceField] | None = None,
    ) -> TypeDescriptor:
        """Register a type. Fields named without metadata get a bare ReferenceField."""
        declared = {name: ReferenceField() for name in field_names}
        declared.update(fields or {})
        descriptor = TypeDescriptor(fields=declared)
        self._descriptors[cls] = descriptor
        return descriptor

    def get(self, cls: type) -> TypeDescriptor | None:
        """Descriptor for a type, inherited through the MRO."""
        for base in cls.__mro__:
            if base in self._descriptors:
                return self._descriptors[base]
        return None

    def is_registered(self, cls: type) -> bool:
        return self.get(cls) is not None

    def __contains__(self, cls: type) -> bool:
        return self.is_registered(cls)

    def __len__(self) -> int:
        return len(self._descriptors)
