"""Base filter class using Pydantic BaseModel."""

from abc import ABC, abstractmethod
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.fields import FieldInfo

from stickerstag.exceptions import InvalidParameter
from stickerstag.pixel_buffer import PixelBuffer


class BaseFilter(BaseModel, ABC):
    """Base class for all buffer filters.

    Uses Pydantic BaseModel for serialization and auto-generated parameter
    schemas. The fields of a subclass are its options; their defaults are
    the documented defaults of the operation.

    Each filter has a VERSION class attribute for serialization migration.
    When filter parameters change, increment VERSION and add migration logic.
    """

    # Strict: no bool, str or None coercion into numeric params
    model_config = ConfigDict(
        validate_assignment=False,
        extra='forbid',
        strict=True,
        arbitrary_types_allowed=True,
    )

    # ClassVar metadata (not serialized as fields)
    filter_type: ClassVar[str] = "base"
    name: ClassVar[str] = "Base Filter"
    description: ClassVar[str] = "Base filter description"
    category: ClassVar[str] = "uncategorized"
    primary_param: ClassVar[str | None] = None
    VERSION: ClassVar[int] = 1

    @abstractmethod
    def apply(self, buffer: PixelBuffer) -> PixelBuffer:
        """Apply the filter to a buffer.

        Params are instance attributes, not **kwargs.

        Args:
            buffer: Source buffer, never modified

        Returns:
            New filtered buffer
        """
        pass

    def __call__(self, buffer: PixelBuffer) -> PixelBuffer:
        return self.apply(buffer)

    @classmethod
    def create(cls, **params: Any) -> 'BaseFilter':
        """Instantiate with params, reporting bad values as InvalidParameter."""
        try:
            return cls(**params)
        except ValidationError as e:
            details = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or cls.filter_type}: {err['msg']}"
                for err in e.errors()
            )
            raise InvalidParameter(details, stage=cls.filter_type) from e

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def params(self) -> dict[str, Any]:
        """The filter's parameter values."""
        return {field_name: getattr(self, field_name) for field_name in type(self).model_fields}

    def to_dict(self) -> dict[str, Any]:
        """Serialize as {'filterId', 'version', 'params'}."""
        return {
            'filterId': self.filter_type,
            'version': self.VERSION,
            'params': self.params(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'BaseFilter':
        """Deserialize from the to_dict() format."""
        from .registry import get_filter_class

        filter_type = data.get('filterId') or data.get('type')
        if not filter_type:
            raise InvalidParameter("Serialized filter has no filterId")
        filter_cls = get_filter_class(filter_type)
        return filter_cls.create(**data.get('params', {}))

    @classmethod
    def parse(cls, text: str) -> 'BaseFilter':
        """Parse a single filter from compact string format.

        The name is followed by an optional positional value for the
        filter's primary parameter and key=value pairs. Lists are comma
        separated.

        Examples:
            'sharpen 2'             -> SharpenFilter(level=2)
            'brightness amount=40'  -> BrightnessFilter(amount=40)
            'convolute 0,-1,0,-1,5,-1,0,-1,0 opaque=false'
        """
        from .registry import get_filter_class

        parts = text.split()
        if not parts:
            raise InvalidParameter(f"Invalid filter format: {text!r}")
        filter_cls = get_filter_class(parts[0])

        kwargs: dict[str, Any] = {}
        positional = []
        for arg in parts[1:]:
            if '=' in arg:
                key, _, value = arg.partition('=')
                kwargs[key.strip()] = _parse_value(value)
            else:
                positional.append(_parse_value(arg))

        if positional:
            primary = filter_cls.primary_param
            if primary is None or len(positional) > 1 or primary in kwargs:
                raise InvalidParameter(
                    f"Unexpected positional value(s) {positional} for {filter_cls.filter_type}",
                    stage=filter_cls.filter_type,
                )
            kwargs[primary] = positional[0]
        return filter_cls.create(**kwargs)

    def to_string(self) -> str:
        """Compact text form, e.g. 'sharpen level=2'."""
        parts = [self.filter_type]
        for key, value in self.params().items():
            if isinstance(value, (list, tuple)):
                value = ",".join(_format_number(v) for v in value)
            elif isinstance(value, float):
                value = _format_number(value)
            parts.append(f"{key}={value}")
        return " ".join(parts)

    # ------------------------------------------------------------------
    # Auto-generated param schema
    # ------------------------------------------------------------------

    @classmethod
    def get_params_schema(cls) -> list[dict[str, Any]]:
        """Auto-generate param schema from model_fields."""
        schema = []
        for field_name, field_info in cls.model_fields.items():
            param = _field_to_param_schema(field_name, field_info)
            if param:
                schema.append(param)
        return schema


def _parse_value(s: str) -> int | float | bool | str | list:
    """Parse string value to appropriate type.

    Handles:
    - Booleans: true, false
    - Integers: 42, -5
    - Floats: 3.14, -0.5, 1e3
    - Lists: 0,-1,0 (each element parsed on its own)
    - Plain strings: anything else
    """
    s = s.strip()
    if ',' in s:
        return [_parse_value(part) for part in s.split(',') if part.strip()]
    if s.lower() == 'true':
        return True
    if s.lower() == 'false':
        return False
    try:
        return int(s)
    except ValueError:
        pass
    try:
        return float(s)
    except ValueError:
        pass
    return s


def _format_number(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _field_to_param_schema(field_name: str, field_info: FieldInfo) -> dict[str, Any] | None:
    """Map a Pydantic FieldInfo to a parameter description dict."""
    extra = field_info.json_schema_extra or {}

    annotation = field_info.annotation
    if annotation is None:
        return None

    schema_type = 'number'
    if annotation is bool:
        schema_type = 'checkbox'
    elif annotation is int:
        schema_type = 'integer'
    elif getattr(annotation, '__origin__', None) in (list, tuple):
        schema_type = 'list'

    param: dict[str, Any] = {
        'id': field_name,
        'name': extra.get('display_name', field_name.replace('_', ' ').title()),
        'type': schema_type,
        'default': None if field_info.is_required() else field_info.default,
    }
    if field_info.is_required():
        param['required'] = True

    # Soft ranges; values outside are clamped, not rejected
    for key in ('min', 'max', 'step'):
        if key in extra:
            param[key] = extra[key]

    return param
