"""
All the structures needed for Kubernetes patching.

Two kinds of patches are supported, as distinguished by their media types:

* JSON-patch (RFC 6902): a list of operations on the fields addressed
  by JSON-pointers (RFC 6901); e.g. ``[{"op": "replace", "path": "/spec/x"}]``.
* JSON merge-patch (RFC 7386): a simple dictionary with the field overrides,
  and ``None`` for field deletions; e.g. ``{"spec": {"x": 1, "y": None}}``.

The JSON-patches are built either with the untyped documents (addressed by
raw JSON-pointers) or with the typed documents (addressed by the model's
fields and validated against the model). Both documents produce the same
list of operations, which is what is eventually sent to the API.
"""
import collections.abc
import sys
import typing
from typing import Any, Dict, Generic, Iterable, Iterator, List, Mapping, \
                   MutableMapping, Optional, Sequence, Type, Union

import pydantic
from typing_extensions import Literal, TypedDict

from kubegate._cogs.structs import bodies

JSONPatchOp = Literal["add", "remove", "replace", "move", "copy", "test"]

# "from" is a reserved keyword, so the functional syntax is the only way.
JSONPatchItem = TypedDict('JSONPatchItem', {
    'op': JSONPatchOp,
    'path': str,
    'value': Optional[Any],
    'from': str,
}, total=False)

JSONPatch = List[JSONPatchItem]

# A path in the typed documents: either dot-separated names, or a sequence of names/indices.
FieldPath = Union[str, Sequence[Union[str, int]]]

if sys.version_info >= (3, 10):
    import types
    _UNION_TYPES: Sequence[Any] = (Union, types.UnionType)
else:
    _UNION_TYPES = (Union,)

# A marker of the fields absent in the original body (different from `None` as a value).
_ABSENT = object()


def _escaped_path(keys: Sequence[str]) -> str:
    """Provides an appropriately escaped path for JSON Patches.

    See https://datatracker.ietf.org/doc/html/rfc6901#section-3 for more details.
    """
    return '/'.join(map(lambda key: key.replace('~', '~0').replace('/', '~1'), keys))


class JSONPatchDocument:
    """
    An untyped JSON-patch: the operations with the raw JSON-pointers as paths.

    The operations are accumulated in the order of the method calls
    and are applied by the API in the same order. The methods return
    the document itself, so that the calls can be chained::

        patch = JSONPatchDocument()
        patch.replace('/spec/replicas', 3).remove('/metadata/labels/tmp')
    """

    def __init__(self, operations: Optional[Iterable[JSONPatchItem]] = None) -> None:
        super().__init__()
        self._operations: JSONPatch = list(operations or [])

    def __repr__(self) -> str:
        return f'{self.__class__.__name__}({self._operations!r})'

    def __len__(self) -> int:
        return len(self._operations)

    def __iter__(self) -> Iterator[JSONPatchItem]:
        return iter(self._operations)

    def add(self, path: Any, value: Any) -> "JSONPatchDocument":
        return self._append(JSONPatchItem(op='add', path=self._make_path(path), value=value))

    def remove(self, path: Any) -> "JSONPatchDocument":
        return self._append(JSONPatchItem(op='remove', path=self._make_path(path)))

    def replace(self, path: Any, value: Any) -> "JSONPatchDocument":
        return self._append(JSONPatchItem(op='replace', path=self._make_path(path), value=value))

    def test(self, path: Any, value: Any) -> "JSONPatchDocument":
        return self._append(JSONPatchItem(op='test', path=self._make_path(path), value=value))

    def move(self, source: Any, path: Any) -> "JSONPatchDocument":
        item = JSONPatchItem(op='move', path=self._make_path(path))
        item['from'] = self._make_path(source)
        return self._append(item)

    def copy(self, source: Any, path: Any) -> "JSONPatchDocument":
        item = JSONPatchItem(op='copy', path=self._make_path(path))
        item['from'] = self._make_path(source)
        return self._append(item)

    def extend(self, operations: Iterable[JSONPatchItem]) -> "JSONPatchDocument":
        for operation in operations:
            self._append(JSONPatchItem(**operation))  # type: ignore
        return self

    def as_json_patch(self) -> JSONPatch:
        """ The JSON-compatible list of operations, as sent to the API. """
        return [bodies.dump(operation) for operation in self._operations]

    def _append(self, item: JSONPatchItem) -> "JSONPatchDocument":
        self._operations.append(item)
        return self

    def _make_path(self, path: Any) -> str:
        if not isinstance(path, str):
            raise TypeError(f"JSON-pointers must be strings, got {path!r}.")
        if path and not path.startswith('/'):
            raise ValueError(f"JSON-pointers must start with a slash, got {path!r}.")
        return path


class TypedJSONPatchDocument(JSONPatchDocument, Generic[bodies.ModelT]):
    """
    A typed JSON-patch: the operations on the fields of a specific model.

    The paths are the Python names of the fields (not the API names),
    either dot-separated or as a sequence; the list items are addressed
    by their integer indexes (or ``"-"`` for appending), the dict items
    by their keys. The paths are validated against the model's declared
    fields and are converted to the JSON-pointers with the API names::

        patch = TypedJSONPatchDocument(DeploymentV1)
        patch.replace(('spec', 'replicas'), 3)
        patch.add('metadata.labels.app', 'demo')
        patch.as_json_patch()
        # [{'op': 'replace', 'path': '/spec/replicas', 'value': 3},
        #  {'op': 'add', 'path': '/metadata/labels/app', 'value': 'demo'}]
    """

    def __init__(
            self,
            model: Type[bodies.ModelT],
            operations: Optional[Iterable[JSONPatchItem]] = None,
    ) -> None:
        super().__init__(operations)
        self.model = model

    def __repr__(self) -> str:
        return f'{self.__class__.__name__}({self.model.__name__}, {self._operations!r})'

    def _make_path(self, path: Any) -> str:
        fields: Sequence[Union[str, int]]
        if isinstance(path, str):
            fields = path.split('.') if path else []
        elif isinstance(path, collections.abc.Sequence):
            fields = path
        else:
            raise TypeError(f"Field paths must be strings or sequences, got {path!r}.")
        return _escaped_path([''] + resolve_fields(self.model, fields)) if fields else ''


def resolve_fields(model: Type[pydantic.BaseModel], fields: Sequence[Union[str, int]]) -> List[str]:
    """
    Convert the Python-side field names into the API-side keys of the model.

    Fails if the fields are not declared in the model (the undeclared
    "extra" fields of the model are not allowed either).
    """
    keys: List[str] = []
    annotation: Any = model
    for field in fields:
        annotation = _unwrap_optional(annotation)
        origin = typing.get_origin(annotation)
        args = typing.get_args(annotation)
        if isinstance(annotation, type) and issubclass(annotation, pydantic.BaseModel):
            name = _find_field_name(annotation, field)
            info = annotation.model_fields[name]
            keys.append(info.serialization_alias or info.alias or name)
            annotation = info.annotation
        elif origin in (list, tuple, collections.abc.Sequence, collections.abc.MutableSequence):
            if not (isinstance(field, int) or field == '-' or (isinstance(field, str) and field.isdigit())):
                raise ValueError(f"List items must be addressed by indexes, got {field!r}.")
            keys.append(str(field))
            annotation = args[0] if args else Any
        elif origin in (dict, collections.abc.Mapping, collections.abc.MutableMapping):
            keys.append(str(field))
            annotation = args[1] if len(args) > 1 else Any
        elif annotation is Any:
            keys.append(str(field))
        else:
            raise ValueError(f"Cannot address the field {field!r} in {annotation!r}.")
    return keys


def _find_field_name(model: Type[pydantic.BaseModel], field: Union[str, int]) -> str:
    if isinstance(field, str) and field in model.model_fields:
        return field
    for name, info in model.model_fields.items():
        if field == info.alias:
            return name
    raise ValueError(f"The model {model.__name__} has no field {field!r}.")


def _unwrap_optional(annotation: Any) -> Any:
    if typing.get_origin(annotation) in _UNION_TYPES:
        args = [arg for arg in typing.get_args(annotation) if arg is not type(None)]
        return args[0] if len(args) == 1 else Any
    return annotation


# A merge-patch, with the JSON-patch conversion if needed.
class Patch(Dict[str, Any]):

    def __init__(
        self,
        __src: Optional[MutableMapping[str, Any]] = None,
        body: Optional[Mapping[str, Any]] = None,
    ) -> None:
        super().__init__(__src or {})
        self._original = body

    def as_json_patch(self, body: Optional[Mapping[str, Any]] = None) -> JSONPatch:
        """
        Convert the merge-patch to a JSON-patch against the original body.

        The original body is needed to decide whether a field is added
        or replaced, and to skip the operations that change nothing
        (e.g. removal of the absent fields, or replacing with the same value).
        """
        body = body if body is not None else self._original
        if not self:
            return []
        if body is None:
            raise ValueError("Cannot build a JSON-patch without the original body.")
        return self._as_json_patch(self, body, keys=[''])

    def _as_json_patch(self, value: object, original: object, keys: List[str]) -> JSONPatch:
        result: JSONPatch = []
        if value is None:
            if original is not _ABSENT:
                result.append(JSONPatchItem(op='remove', path=_escaped_path(keys)))
        elif isinstance(value, collections.abc.Mapping) and isinstance(original, collections.abc.Mapping):
            for key, val in value.items():
                result.extend(self._as_json_patch(val, original.get(key, _ABSENT), keys + [key]))
        elif original is _ABSENT:
            result.append(JSONPatchItem(op='add', path=_escaped_path(keys), value=value))
        elif original != value:
            result.append(JSONPatchItem(op='replace', path=_escaped_path(keys), value=value))
        return result
