"""
Template Store

Loads, validates, and caches document templates from YAML files. Every file
is validated on startup and the store fails fast if any is invalid.

Template file layout:

    document_type: rental_agreement
    name:
      en: Residential Lease Agreement
      ar: عقد إيجار سكني
    required_fields: [party_a_name, party_a_id]
    transforms:
      rent_amount: currency
    languages:
      en: |
        ... {{party_a_name}} ... {{#if has_deposit}} ... {{/if}}
      ar: |
        ...
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

import yaml

from ..exceptions import (
    ConfigurationError,
    TemplateNotFoundError,
    TemplateSyntaxError,
    ValidationError,
)
from ..reference import CUSTOM_DOCUMENT_TYPE, LANGUAGES, validate_document_type
from ..schemas import GenerationRequest
from .bindings import FieldBindings, build_bindings
from .parser import Node, flag_names, parse, placeholder_names
from .renderer import RenderResult, render
from .transforms import TRANSFORMS

logger = logging.getLogger(__name__)

BILINGUAL = "bilingual"
BILINGUAL_SEPARATOR = "\n\n* * *\n\n"


@dataclass(frozen=True)
class Template:
    """
    One document type with its per-language bodies.

    Immutable after loading; `variants` holds the parsed body per language.
    """
    document_type: str
    names: Mapping[str, str]
    bodies: Mapping[str, str]
    variants: Mapping[str, Tuple[Node, ...]]
    required_fields: Tuple[str, ...] = ()
    transforms: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def languages(self) -> List[str]:
        return sorted(self.variants)

    def supports(self, language: str) -> bool:
        if language == BILINGUAL:
            return "en" in self.variants and "ar" in self.variants
        return language in self.variants

    def variant(self, language: str) -> Tuple[Node, ...]:
        nodes = self.variants.get(language)
        if nodes is None:
            raise TemplateNotFoundError(self.document_type, language)
        return nodes

    def render(self, language: str, bindings: FieldBindings) -> RenderResult:
        return render(self.variant(language), bindings, required_fields=self.required_fields)

    def render_request(self, request: GenerationRequest, *, today: Optional[date] = None) -> RenderResult:
        """
        Render the variant matching the request language.

        Bilingual requests render the English and Arabic variants, each with
        bindings formatted for its own language, one after the other.
        """
        language = request.language
        if language != BILINGUAL:
            bindings = build_bindings(request, language=language, transforms=self.transforms, today=today)
            return self.render(language, bindings)

        if not self.supports(BILINGUAL):
            raise TemplateNotFoundError(self.document_type, BILINGUAL)
        results = [
            self.render(lang, build_bindings(request, language=lang, transforms=self.transforms, today=today))
            for lang in ("en", "ar")
        ]
        missing = tuple(dict.fromkeys(name for r in results for name in r.missing))
        missing_required = tuple(dict.fromkeys(name for r in results for name in r.missing_required))
        return RenderResult(
            text=BILINGUAL_SEPARATOR.join(r.text for r in results),
            missing=missing,
            missing_required=missing_required,
        )

    @classmethod
    def from_dict(cls, data: dict) -> "Template":
        """
        Create a Template from a parsed YAML dict, validating as it goes.

        Raises ValidationError or TemplateSyntaxError.
        """
        if not isinstance(data, dict):
            raise ValidationError("Template file must contain a mapping")

        document_type = validate_document_type(str(data.get("document_type", "")))
        if document_type == CUSTOM_DOCUMENT_TYPE:
            raise ValidationError("The custom document type has no template")

        bodies = data.get("languages") or {}
        if not isinstance(bodies, dict) or not bodies:
            raise ValidationError("Template must define at least one language body", field="languages")

        variants: Dict[str, Tuple[Node, ...]] = {}
        for language, body in bodies.items():
            if language not in LANGUAGES or language == BILINGUAL:
                raise ValidationError(f"Unsupported template language '{language}'", field="languages")
            if not isinstance(body, str):
                raise ValidationError(f"Body for '{language}' must be a string", field="languages")
            try:
                variants[language] = parse(body)
            except TemplateSyntaxError as e:
                raise TemplateSyntaxError(f"[{language}] {e}") from e

        cls._validate_consistency(variants)

        transforms = dict(data.get("transforms") or {})
        unknown = sorted(name for name in transforms.values() if name not in TRANSFORMS)
        if unknown:
            raise ValidationError(f"Unknown transforms: {unknown}", field="transforms")

        required_fields = tuple(data.get("required_fields") or ())
        placeholders = placeholder_names(next(iter(variants.values())))
        not_used = sorted(set(required_fields) - placeholders)
        if not_used:
            raise ValidationError(
                f"Required fields never used by the template: {not_used}",
                field="required_fields",
            )

        names = dict(data.get("name") or {})
        return cls(
            document_type=document_type,
            names=MappingProxyType(names),
            bodies=MappingProxyType(dict(bodies)),
            variants=MappingProxyType(variants),
            required_fields=required_fields,
            transforms=MappingProxyType(transforms),
        )

    @staticmethod
    def _validate_consistency(variants: Mapping[str, Tuple[Node, ...]]) -> None:
        """All language variants must use the same placeholders and flags."""
        languages = sorted(variants)
        reference = languages[0]
        ref_placeholders = placeholder_names(variants[reference])
        ref_flags = flag_names(variants[reference])

        for language in languages[1:]:
            placeholders = placeholder_names(variants[language])
            flags = flag_names(variants[language])
            if placeholders != ref_placeholders:
                diff = sorted(placeholders ^ ref_placeholders)
                raise ValidationError(
                    f"Placeholders differ between '{reference}' and '{language}': {diff}"
                )
            if flags != ref_flags:
                diff = sorted(flags ^ ref_flags)
                raise ValidationError(
                    f"Conditional flags differ between '{reference}' and '{language}': {diff}"
                )


class TemplateStore:
    """
    Read-only collection of templates keyed by document type.

    Usage:
        # On app startup
        store = TemplateStore.load_directory(settings.templates_dir)

        # During request handling
        template = store.get_or_raise('rental_agreement')
    """

    def __init__(self, templates: Optional[Mapping[str, Template]] = None):
        self._templates: Mapping[str, Template] = MappingProxyType(dict(templates or {}))

    @classmethod
    def load_directory(cls, directory: Path) -> "TemplateStore":
        """
        Load and validate every *.yml / *.yaml file in a directory.

        If any template fails validation, raises ConfigurationError with all
        errors listed.
        """
        directory = Path(directory)
        if not directory.exists():
            logger.warning(f"Templates directory not found: {directory}")
            return cls()

        templates: Dict[str, Template] = {}
        errors: List[str] = []
        files = sorted(directory.glob("*.yml")) + sorted(directory.glob("*.yaml"))

        for path in files:
            try:
                template = Template.from_dict(yaml.safe_load(path.read_text(encoding="utf-8")))
            except (ValidationError, TemplateSyntaxError, yaml.YAMLError) as e:
                errors.append(f"{path.name}: {e}")
                continue

            if template.document_type in templates:
                errors.append(f"{path.name}: Duplicate document type '{template.document_type}'")
                continue
            templates[template.document_type] = template
            logger.debug(f"Loaded template: {template.document_type} {template.languages}")

        if errors:
            error_msg = "Template configuration errors:\n" + "\n".join(f"  - {e}" for e in errors)
            logger.error(error_msg)
            raise ConfigurationError(error_msg)

        logger.info(f"Loaded {len(templates)} template(s) from {directory}")
        return cls(templates)

    def get(self, document_type: str) -> Optional[Template]:
        return self._templates.get(document_type)

    def get_or_raise(self, document_type: str) -> Template:
        template = self.get(document_type)
        if template is None:
            raise TemplateNotFoundError(document_type)
        return template

    def find(self, document_type: str, language: str) -> Optional[Template]:
        """Template for a document type if it has the requested language, else None."""
        template = self.get(document_type)
        if template is None or not template.supports(language):
            return None
        return template

    def all(self) -> List[Template]:
        return [self._templates[k] for k in sorted(self._templates)]

    def __len__(self) -> int:
        return len(self._templates)
