"""Hypermedia affordances and their link-meta renderings."""

from __future__ import annotations

from typing import Any, Iterable, Protocol, Sequence, runtime_checkable

from .model import Affordance, AffordanceField

ENTITY_ALTERING_METHODS = frozenset({"POST", "PUT", "PATCH"})


@runtime_checkable
class AffordanceProvider(Protocol):
    """Supplies the actions available on an entity."""

    def affordances_for(self, entity: Any) -> Sequence[Affordance]:
        """Return zero or more affordances for ``entity``."""
        ...


def _property(field: AffordanceField, *, with_type: bool = True) -> dict[str, Any]:
    result: dict[str, Any] = {"name": field.name}
    if with_type:
        result["type"] = field.type
    if field.required:
        result["required"] = True
    return result


def input_properties(affordance: Affordance) -> list[dict[str, Any]]:
    """Input properties are only meaningful for entity-altering methods."""
    if affordance.http_method not in ENTITY_ALTERING_METHODS:
        return []
    return [_property(field) for field in affordance.input_fields]


def query_properties(affordance: Affordance) -> list[dict[str, Any]]:
    """Query properties are only meaningful for GET."""
    if affordance.http_method != "GET":
        return []
    return [_property(field, with_type=False) for field in affordance.query_fields]


def as_link_meta(affordances: Iterable[Affordance], href: str) -> list[dict[str, Any]]:
    """Render affordances as a list for a link's ``meta.affordances``."""
    rendered = []
    for affordance in affordances:
        entry: dict[str, Any] = {
            "name": affordance.name,
            "link": {"rel": affordance.name, "href": affordance.target or href},
            "httpMethod": affordance.http_method,
        }
        inputs = input_properties(affordance)
        if inputs:
            entry["inputProperties"] = inputs
        queries = query_properties(affordance)
        if queries:
            entry["queryProperties"] = queries
        rendered.append(entry)
    return rendered


def as_hal_forms_templates(
    affordances: Iterable[Affordance], href: str
) -> dict[str, dict[str, Any]]:
    """Render affordances as HAL-FORMS ``_templates``; the first one is ``default``."""
    templates: dict[str, dict[str, Any]] = {}
    for affordance in affordances:
        # GET affordances are plain links, not forms.
        if affordance.http_method == "GET":
            continue
        key = "default" if not templates else affordance.name
        template: dict[str, Any] = {
            "method": affordance.http_method,
            "properties": input_properties(affordance),
        }
        if affordance.target and affordance.target != href:
            template["target"] = affordance.target
        templates[key] = template
    return templates
