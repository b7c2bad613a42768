"""
Explicit option schema for the gateway configuration.

Maps every canonical dotted option path (e.g. "authenticator.lndhost",
"sqlite.databasefilename") to its type, default, allowed choices and help
text. Loaders use it to fill or override fields by structural name without
depending on the model classes directly.
"""

from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Any, Literal, Mapping, Optional, Union, get_args, get_origin

from pydantic import BaseModel
from pydantic.fields import FieldInfo

from core.config import OPTION_KEY, Config
from core.errors import UnknownOptionError


@dataclass(frozen=True)
class FieldSpec:
    """Description of one configurable option."""
    path: str
    type: str
    default: Any
    choices: Optional[tuple[Any, ...]]
    description: Optional[str]
    attrs: tuple[str, ...]


def _option_name(name: str, field: FieldInfo) -> str:
    extra = field.json_schema_extra
    if isinstance(extra, dict) and OPTION_KEY in extra:
        return str(extra[OPTION_KEY])
    return name.replace("_", "")


def _is_class(annotation: Any) -> bool:
    # list[Any] and friends pass isinstance(..., type) on older interpreters
    return get_origin(annotation) is None and isinstance(annotation, type)


def _choices(annotation: Any) -> Optional[tuple[Any, ...]]:
    if _is_class(annotation) and issubclass(annotation, Enum):
        return tuple(member.value for member in annotation)

    origin = get_origin(annotation)
    if origin is Literal:
        return get_args(annotation)
    if origin is Union:
        for arg in get_args(annotation):
            if arg is type(None):
                continue
            choices = _choices(arg)
            if choices:
                return choices
    return None


def _type_name(annotation: Any) -> str:
    if _is_class(annotation):
        return annotation.__name__
    return str(annotation).replace("typing.", "")


def _is_group(annotation: Any) -> bool:
    return _is_class(annotation) and issubclass(annotation, BaseModel)


def _walk(
    model: type[BaseModel],
    prefix: str,
    attrs: tuple[str, ...],
) -> dict[str, FieldSpec]:
    specs: dict[str, FieldSpec] = {}
    for name, field in model.model_fields.items():
        option = prefix + _option_name(name, field)
        field_attrs = attrs + (name,)

        if _is_group(field.annotation):
            specs.update(_walk(field.annotation, option + ".", field_attrs))
            continue

        default = field.get_default(call_default_factory=True)
        if isinstance(default, Enum):
            default = default.value

        specs[option] = FieldSpec(
            path=option,
            type=_type_name(field.annotation),
            default=default,
            choices=_choices(field.annotation),
            description=field.description,
            attrs=field_attrs,
        )
    return specs


@lru_cache
def _schema_for(model: type[BaseModel]) -> dict[str, FieldSpec]:
    return _walk(model, "", ())


def config_schema(model: type[BaseModel] = Config) -> dict[str, FieldSpec]:
    """
    Build the option schema of a configuration model.

    Group fields (nested models) become namespaces; only leaf options
    appear in the result.
    """
    return dict(_schema_for(model))


def apply_overrides(config: Config, overrides: Mapping[str, Any]) -> Config:
    """
    Return a copy of config with the given options replaced.

    Args:
        config: Configuration to start from; it is not modified
        overrides: Option path to value, e.g. {"authenticator.lndhost": "localhost:10009"}

    Returns:
        A new, type-checked Config

    Raises:
        UnknownOptionError: If a path is not part of the schema
        pydantic.ValidationError: If a value has the wrong type or is not
            one of the option's choices
    """
    schema = _schema_for(Config)
    data = config.model_dump()

    for path, value in overrides.items():
        spec = schema.get(path.lower())
        if spec is None:
            raise UnknownOptionError(path)

        target = data
        for attr in spec.attrs[:-1]:
            target = target[attr]
        target[spec.attrs[-1]] = value

    return Config.model_validate(data)
