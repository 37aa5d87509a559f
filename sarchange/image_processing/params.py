# -*- coding: utf-8 -*-
"""
Tunable Parameter Annotations - Declarative constraints via typing.Annotated.

Processors declare their knobs as annotated class-body fields::

    class SpeckleFilter(ImageTransform):
        kind: Annotated[str, Options('none', 'lee', 'kuan', 'frost'),
                        Desc('Speckle filter')] = 'none'
        window_size: Annotated[int, Range(min=1, max=31),
                               Desc('Window side length')] = 3

``collect_param_specs`` turns those fields into ``ParamSpec`` objects at
class-definition time; ``ImageProcessor._resolve_params`` uses them to
merge and validate runtime overrides.

Author
------
Steven Siebert

License
-------
MIT License
Copyright (c) 2024 geoint.org
See LICENSE file for full text.

Created
-------
2026-10-18

Modified
--------
2026-10-18
"""

# Standard library
from typing import (
    Annotated,
    Any,
    Optional,
    Tuple,
    Union,
    get_origin,
    get_type_hints,
)

Number = Union[int, float]


class ParamMeta:
    """Base marker for parameter metadata inside ``Annotated``."""


class Range(ParamMeta):
    """Inclusive numeric range constraint."""

    __slots__ = ('min', 'max')

    def __init__(
        self,
        min: Optional[Number] = None,
        max: Optional[Number] = None,
    ) -> None:
        self.min = min
        self.max = max

    def __repr__(self) -> str:
        return f"Range(min={self.min!r}, max={self.max!r})"


class Options(ParamMeta):
    """Discrete choice constraint."""

    __slots__ = ('choices',)

    def __init__(self, *choices: Any) -> None:
        if not choices:
            raise ValueError("Options requires at least one choice")
        self.choices = choices

    def __repr__(self) -> str:
        return f"Options{self.choices!r}"


class Desc(ParamMeta):
    """Human-readable parameter description."""

    __slots__ = ('text',)

    def __init__(self, text: str) -> None:
        self.text = text

    def __repr__(self) -> str:
        return f"Desc({self.text!r})"


_MISSING = object()


class ParamSpec:
    """Resolved specification of one tunable parameter.

    Attributes
    ----------
    name : str
        Keyword-argument name.
    param_type : type
        Expected Python type.  ``int`` values satisfy ``float``.
    default : Any
        Default value (``None`` when the parameter is required).
    description : str
        Text from ``Desc``.
    min_value, max_value : int, float or None
        Inclusive bounds from ``Range``.
    choices : tuple or None
        Allowed values from ``Options``.
    """

    __slots__ = (
        'name', 'param_type', 'default', 'has_default',
        'description', 'min_value', 'max_value', 'choices',
    )

    def __init__(
        self,
        name: str,
        param_type: type,
        default: Any = None,
        has_default: bool = True,
        description: str = '',
        min_value: Optional[Number] = None,
        max_value: Optional[Number] = None,
        choices: Optional[Tuple] = None,
    ) -> None:
        self.name = name
        self.param_type = param_type
        self.default = default
        self.has_default = has_default
        self.description = description
        self.min_value = min_value
        self.max_value = max_value
        self.choices = choices

    @property
    def required(self) -> bool:
        return not self.has_default

    def validate(self, value: Any) -> None:
        """Check *value* against type, range and choices.

        Raises
        ------
        TypeError
            If *value* has the wrong type.
        ValueError
            If *value* is out of range or not an allowed choice.
        """
        if self.param_type is float:
            ok = isinstance(value, (int, float)) and not isinstance(value, bool)
        elif self.param_type is int:
            ok = isinstance(value, int) and not isinstance(value, bool)
        elif self.param_type is object:
            ok = True
        else:
            ok = isinstance(value, self.param_type)
        if not ok:
            raise TypeError(
                f"Parameter '{self.name}' must be "
                f"{self.param_type.__name__}, got {type(value).__name__}"
            )
        if self.min_value is not None and value < self.min_value:
            raise ValueError(
                f"Parameter '{self.name}' value {value!r} "
                f"is below minimum {self.min_value!r}"
            )
        if self.max_value is not None and value > self.max_value:
            raise ValueError(
                f"Parameter '{self.name}' value {value!r} "
                f"is above maximum {self.max_value!r}"
            )
        if self.choices is not None and value not in self.choices:
            raise ValueError(
                f"Parameter '{self.name}' value {value!r} "
                f"is not in allowed choices {self.choices!r}"
            )

    def __repr__(self) -> str:
        return (
            f"ParamSpec(name={self.name!r}, "
            f"param_type={self.param_type.__name__}, "
            f"default={self.default!r})"
        )


def collect_param_specs(cls: type) -> Tuple[ParamSpec, ...]:
    """Collect ``Annotated`` parameter declarations on *cls*.

    Parent-class parameters come first, in declaration order.

    Raises
    ------
    TypeError
        If a field combines ``Range`` and ``Options``.
    """
    hints = get_type_hints(cls, include_extras=True)

    ordered = []
    for klass in reversed(cls.__mro__):
        for name in getattr(klass, '__annotations__', {}):
            if name in hints and name not in ordered:
                ordered.append(name)

    specs = []
    for name in ordered:
        hint = hints[name]
        if get_origin(hint) is not Annotated:
            continue
        metas = [m for m in hint.__metadata__ if isinstance(m, ParamMeta)]
        if not metas:
            continue

        rng = next((m for m in metas if isinstance(m, Range)), None)
        opts = next((m for m in metas if isinstance(m, Options)), None)
        desc = next((m for m in metas if isinstance(m, Desc)), None)
        if rng is not None and opts is not None:
            raise TypeError(
                f"Parameter '{name}' on {cls.__qualname__}: "
                f"Range and Options are mutually exclusive."
            )

        default = getattr(cls, name, _MISSING)
        specs.append(ParamSpec(
            name=name,
            param_type=hint.__args__[0],
            default=None if default is _MISSING else default,
            has_default=default is not _MISSING,
            description=desc.text if desc else '',
            min_value=rng.min if rng else None,
            max_value=rng.max if rng else None,
            choices=opts.choices if opts else None,
        ))
    return tuple(specs)
