# -*- coding: utf-8 -*-
"""
Processor Versioning - Version and capability decorators for processors.

``@processor_version`` stamps an algorithm version on a processor class;
``@processor_tags`` stamps modality / category metadata used for
discovery.  Golden-output tests pin behaviour per version, so bump the
version whenever numeric output changes.

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
import importlib.metadata
from typing import Optional, Sequence, Type, TypeVar

# sarchange internal
from sarchange.vocabulary import ImageModality, ProcessorCategory

T = TypeVar('T')


def processor_version(version: Optional[str] = None):
    """Class decorator setting ``__processor_version__``.

    Parameters
    ----------
    version : str, optional
        Semantic version string.  When omitted the installed package
        version is used (``'unknown'`` outside an installed tree).

    Examples
    --------
    >>> @processor_version('1.0.0')
    ... class Identity(ImageTransform):
    ...     def apply(self, source, **kwargs):
    ...         return source
    >>> Identity.__processor_version__
    '1.0.0'
    """
    def decorator(cls: Type[T]) -> Type[T]:
        if version:
            cls.__processor_version__ = version
        else:
            try:
                cls.__processor_version__ = importlib.metadata.version(
                    'sarchange'
                )
            except importlib.metadata.PackageNotFoundError:
                cls.__processor_version__ = 'unknown'
        return cls
    return decorator


def processor_tags(
    modalities: Optional[Sequence[ImageModality]] = None,
    category: Optional[ProcessorCategory] = None,
    description: Optional[str] = None,
):
    """Class decorator setting ``__processor_tags__``.

    Raises
    ------
    TypeError
        If a modality is not an ``ImageModality`` or the category is not
        a ``ProcessorCategory``.
    """
    for m in modalities or ():
        if not isinstance(m, ImageModality):
            raise TypeError(
                f"modalities must be ImageModality members, got {m!r}"
            )
    if category is not None and not isinstance(category, ProcessorCategory):
        raise TypeError(
            f"category must be a ProcessorCategory member, got {category!r}"
        )

    def decorator(cls: Type[T]) -> Type[T]:
        cls.__processor_tags__ = {
            'modalities': tuple(modalities) if modalities else (),
            'category': category,
            'description': description,
        }
        return cls
    return decorator
