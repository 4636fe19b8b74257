from __future__ import annotations
import copy
from collections.abc import Mapping, Sequence
from typing import Any, Dict, Iterable, Iterator, List, Optional, Type

_INTERNAL = ('_attributes', '_response')


class Resource(Mapping):
    """Read-only view over one decoded Pylon object.

    Fields are reachable as attributes (``issue.title``) or items
    (``issue['title']``). The API adds fields over time, so no schema is
    enforced: any key present in the payload is readable, a missing key raises
    AttributeError/KeyError, and a key present with a null value returns None.
    Fields that collide with Mapping methods (``items``, ``keys``, ``values``,
    ``get``) are only reachable with item access.

    ``_response`` is the ApiResponse the object was decoded from.
    """
    __slots__ = _INTERNAL

    def __init__(self, attributes: Optional[Dict[str, Any]] = None, response: Any = None):
        object.__setattr__(self, '_attributes', copy.deepcopy(dict(attributes or {})))
        object.__setattr__(self, '_response', response)

    def __getattr__(self, name: str) -> Any:
        if name in _INTERNAL or name.startswith('__'):
            raise AttributeError(name)
        try:
            return self._attributes[name]
        except KeyError:
            raise AttributeError(f"{type(self).__name__} has no field '{name}'") from None

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f'{type(self).__name__} is read-only')

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f'{type(self).__name__} is read-only')

    def __getitem__(self, key: str) -> Any:
        return self._attributes[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._attributes)

    def __len__(self) -> int:
        return len(self._attributes)

    def __dir__(self) -> Iterable[str]:
        return list(super().__dir__()) + [k for k in self._attributes if isinstance(k, str) and k.isidentifier()]

    def __reduce__(self):
        return (type(self), (self._attributes,))

    def __repr__(self) -> str:
        return f'{type(self).__name__}({self._attributes!r})'

    def to_dict(self) -> Dict[str, Any]:
        return copy.deepcopy(self._attributes)


class Account(Resource):
    __slots__ = ()


class Attachment(Resource):
    __slots__ = ()


class Contact(Resource):
    __slots__ = ()


class Issue(Resource):
    __slots__ = ()


class Tag(Resource):
    __slots__ = ()


class Team(Resource):
    __slots__ = ()


class TicketForm(Resource):
    __slots__ = ()


class User(Resource):
    __slots__ = ()


class Article(Resource):
    __slots__ = ()


class CustomField(Resource):
    __slots__ = ()


class UserRole(Resource):
    __slots__ = ()


class Collection(Sequence):
    """Ordered Resources decoded from one response page."""

    def __init__(self, items: Iterable[Any] = (), model: Type[Resource] = Resource, response: Any = None):
        self._items: List[Resource] = [
            item if isinstance(item, Resource) else model(item, response)
            for item in items
        ]
        self._response = response

    def __getitem__(self, index):
        if isinstance(index, slice):
            return Collection(self._items[index], response=self._response)
        return self._items[index]

    def __len__(self) -> int:
        return len(self._items)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Collection):
            return self._items == other._items
        if isinstance(other, list):
            return self._items == other
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f'<Collection items={len(self._items)}>'

    def to_list(self) -> List[Dict[str, Any]]:
        return [item.to_dict() for item in self._items]
