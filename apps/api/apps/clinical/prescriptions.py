"""
Category-specific prescription instructions.

Each medicine category has its own instruction shape. The JSON stored on
``Prescription.category_data`` is always one of the variants below,
tagged by ``category``:

    {"category": "Capsule/Tablet", "meal_timing": "After Meal"}
    {"category": "External Application", "application_area": "Left forearm"}
    {"category": "Injection", "injection_route": "Intramuscular (IM)"}
    {"category": "Liquids/Syrups", "liquid_timing": "Before Meal"}
"""
import dataclasses
from dataclasses import dataclass
from typing import ClassVar, Union

from django.core.exceptions import ImproperlyConfigured

from apps.clinical.models import MedicineCategoryChoices
from apps.core.errors import ValidationFailed

MEAL_TIMINGS = ('Before Meal', 'After Meal')
INJECTION_ROUTES = ('Intramuscular (IM)', 'Subcutaneous (SC)', 'Intravenous (IV)')


class InvalidCategoryData(ValidationFailed):
    default_message = 'Invalid category data'


def _require_choice(field, value, choices):
    if value not in choices:
        raise InvalidCategoryData(f'{field} must be one of: {", ".join(choices)}', field=field)


@dataclass(frozen=True)
class CapsuleTablet:
    meal_timing: str
    category: ClassVar[str] = MedicineCategoryChoices.CAPSULE_TABLET

    def __post_init__(self):
        _require_choice('meal_timing', self.meal_timing, MEAL_TIMINGS)


@dataclass(frozen=True)
class ExternalApplication:
    application_area: str
    category: ClassVar[str] = MedicineCategoryChoices.EXTERNAL_APPLICATION

    def __post_init__(self):
        if not isinstance(self.application_area, str) or not self.application_area.strip():
            raise InvalidCategoryData('application_area is required', field='application_area')


@dataclass(frozen=True)
class Injection:
    injection_route: str
    category: ClassVar[str] = MedicineCategoryChoices.INJECTION

    def __post_init__(self):
        _require_choice('injection_route', self.injection_route, INJECTION_ROUTES)


@dataclass(frozen=True)
class LiquidSyrup:
    liquid_timing: str
    category: ClassVar[str] = MedicineCategoryChoices.LIQUID_SYRUP

    def __post_init__(self):
        _require_choice('liquid_timing', self.liquid_timing, MEAL_TIMINGS)


CategoryData = Union[CapsuleTablet, ExternalApplication, Injection, LiquidSyrup]

_VARIANTS = {
    variant.category: variant
    for variant in (CapsuleTablet, ExternalApplication, Injection, LiquidSyrup)
}

if set(_VARIANTS) != set(MedicineCategoryChoices.values):
    raise ImproperlyConfigured('Every medicine category needs a category data variant')


def parse_category_data(payload) -> CategoryData:
    """
    Build the variant for ``payload``.

    Raises:
        InvalidCategoryData: unknown tag, missing or unexpected fields,
            or a field value outside its allowed set
    """
    if not isinstance(payload, dict):
        raise InvalidCategoryData('category_data must be an object')

    category = payload.get('category')
    variant = _VARIANTS.get(category) if isinstance(category, str) else None
    if variant is None:
        raise InvalidCategoryData('Unknown medicine category', category=category)

    expected = {f.name for f in dataclasses.fields(variant)}
    given = set(payload) - {'category'}
    if given != expected:
        raise InvalidCategoryData(
            f'{variant.category} instructions take exactly: {", ".join(sorted(expected))}',
            missing=sorted(expected - given),
            unexpected=sorted(given - expected),
        )
    return variant(**{name: payload[name] for name in expected})


def to_json(data: CategoryData) -> dict:
    return {'category': str(data.category), **dataclasses.asdict(data)}


def instructions(data: CategoryData) -> str:
    """Human readable instruction line for printouts."""
    if isinstance(data, CapsuleTablet):
        return data.meal_timing
    if isinstance(data, ExternalApplication):
        return f'Apply on {data.application_area}'
    if isinstance(data, Injection):
        return data.injection_route
    if isinstance(data, LiquidSyrup):
        return data.liquid_timing
    raise TypeError(f'Unhandled category data: {type(data).__name__}')
