"""
Record kernel – pydantic models with generated accessors.

* At class creation the metaclass reads the `Annotated` markers, builds the
  dispatch table and installs one method per granted (verb, property).
* Attribute writes to a declared property go through its setter, so
  validation and association sync cannot be bypassed.
* Records compare and hash by identity; they live in each other's sets.
"""

import functools
import inspect
import logging
from typing import Any, ClassVar, Dict, Tuple

from pydantic import BaseModel, ValidationError

from ..associations.sync import registry
from ..dispatch.dispatcher import Dispatcher, accessor, explicit
from ..errors import ArityMismatch, InvalidValue
from ..events import emit_create
from .naming import ACCESSOR_RE, Verb, parse_method_name
from .properties import PropertyMetadata, collect_properties

logger = logging.getLogger(__name__)

ModelMeta = BaseModel.__class__


# metaclass that builds and installs accessors
class RecordMeta(ModelMeta):
    """Attach `__autoprop_dispatcher__` and install accessors at class-creation time."""

    def __new__(mcls, name: str, bases, ns, **kw):
        cls = super().__new__(mcls, name, bases, ns, **kw)  # create class first

        properties = collect_properties(cls)
        dispatcher = Dispatcher(cls, properties)
        cls.__autoprop_properties__ = properties  # type: ignore[attr-defined]
        cls.__autoprop_dispatcher__ = dispatcher  # type: ignore[attr-defined]

        for method, (verb, prop) in dispatcher.method_names().items():
            existing = getattr(cls, method, None)
            if existing is None or hasattr(existing, "__autoprop_accessor__"):
                setattr(cls, method, accessor(dispatcher, verb, prop, method))
                continue
            logger.debug("%s.%s is defined explicitly; not generated", name, method)
            if inspect.isfunction(existing) and not hasattr(existing, "__autoprop_explicit__"):
                setattr(cls, method, explicit(existing, method))

        registry.register(cls, properties)
        return cls


# Record base
class Record(BaseModel, metaclass=RecordMeta):
    """Base class – declared properties are reached through generated accessors."""

    # positional constructor arguments, in order
    __construct__: ClassVar[Tuple[str, ...]] = ()

    model_config = {"frozen": False, "arbitrary_types_allowed": True}

    def __init__(self, *args: Any, **data: Any):
        if args:
            names = type(self).__construct__
            if len(args) != len(names):
                raise ArityMismatch(
                    f"{type(self).__name__}() takes {len(names)} positional "
                    f"argument(s) but {len(args)} were given"
                )
            duplicated = set(names) & set(data)
            if duplicated:
                raise ArityMismatch(
                    f"{type(self).__name__}() got multiple values for {sorted(duplicated)}"
                )
            data.update(zip(names, args))

        # collections always start as containers, never None
        for name, meta in type(self).__autoprop_properties__.items():
            if meta.is_collection and name not in data:
                data[name] = meta.collection.empty()

        try:
            super().__init__(**data)
        except ValidationError as exc:
            raise InvalidValue(f"invalid {type(self).__name__}: {exc}") from exc

    # link associated values passed at construction
    def model_post_init(self, _ctx: Any) -> None:
        type(self).__autoprop_dispatcher__.bind(self)
        emit_create(self)

    # declared properties are only written through their setter
    def __setattr__(self, name: str, value: Any):
        if name in type(self).__autoprop_properties__:
            type(self).__autoprop_dispatcher__.call(self, Verb.SET, name, (value,))
            return
        super().__setattr__(name, value)

    # accessor-shaped names that were not generated
    def __getattr__(self, item: str) -> Any:
        if ACCESSOR_RE.match(item):
            dispatcher = type(self).__autoprop_dispatcher__
            dispatcher.resolver.resolve(*parse_method_name(item))  # raises UnknownMethod
            return functools.partial(dispatcher.invoke, self, item)
        return super().__getattr__(item)  # type: ignore[misc]

    def invoke(self, name: str, *args: Any) -> Any:
        """Call an accessor by name: `post.invoke("addTag", "python")`.

        Explicitly written methods are honoured; see `Dispatcher.invoke`.
        """
        return type(self).__autoprop_dispatcher__.invoke(self, name, args)

    # introspection
    @classmethod
    def property_metadata(cls) -> Dict[str, PropertyMetadata]:
        return dict(cls.__autoprop_properties__)

    @classmethod
    def accessor_names(cls) -> list[str]:
        return sorted(cls.__autoprop_dispatcher__.method_names())

    # identity semantics
    def __eq__(self, other: object) -> bool:
        return self is other

    def __hash__(self) -> int:
        return id(self)

    # associated records point at each other; keep repr one level deep
    def __repr_args__(self):
        for name, value in super().__repr_args__():
            if isinstance(value, Record):
                value = _Ref(value)
            elif isinstance(value, (list, set)):
                value = type(value)(_Ref(v) if isinstance(v, Record) else v for v in value)
            yield name, value


class _Ref:
    __slots__ = ("record",)

    def __init__(self, record: Record):
        self.record = record

    def __repr__(self) -> str:
        return f"<{type(self.record).__name__} at {id(self.record):#x}>"

    def __hash__(self) -> int:
        return id(self.record)
