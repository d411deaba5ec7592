"""Explicit catalog CRUD: products, pages, properties, suggested values, associations and defaults.

Renames and deletes of properties/values are not plain writes; they are routed to the rename and
impact modules so payloads follow the catalog.
"""
from __future__ import annotations
import logging
from sqlalchemy.orm import Session, selectinload
from trackplan.catalog.codec import is_contextual_value
from trackplan.catalog.rename import rename_property
from trackplan.errors import CatalogConflictError, CatalogNotFoundError, CatalogValidationError
from trackplan.models.tables import (
    PROPERTY_TYPES, CommonProperty, Page, Product, Property, PropertyValue, SuggestedValue,
)

logger = logging.getLogger(__name__)


def _require(value: str | None, message: str) -> str:
    if value is None or not str(value).strip():
        raise CatalogValidationError(message)
    return value


def normalize_property_type(type_: str | None) -> str:
    t = _require(type_, "Property type is required").strip().lower()
    if t not in PROPERTY_TYPES:
        raise CatalogValidationError(f"Invalid type. Must be one of: {', '.join(PROPERTY_TYPES)}")
    return t


def get_product(session: Session, product_id: int) -> Product:
    product = session.get(Product, product_id)
    if product is None:
        raise CatalogNotFoundError("Product not found")
    return product


def create_product(session: Session, name: str, description: str | None = None) -> Product:
    product = Product(name=_require(name, "Product name is required"), description=description)
    session.add(product)
    session.flush()
    return product


def delete_product(session: Session, product_id: int) -> None:
    """Delete a product; pages, events, history and the whole catalog cascade."""
    session.delete(get_product(session, product_id))
    session.flush()


def create_page(session: Session, product_id: int, name: str, url: str | None = None) -> Page:
    get_product(session, product_id)
    page = Page(product_id=product_id, name=_require(name, "Page name is required"), url=url)
    session.add(page)
    session.flush()
    return page


# -------------------- Properties --------------------

def list_properties(session: Session, product_id: int) -> list[Property]:
    get_product(session, product_id)
    return (
        session.query(Property)
        .options(selectinload(Property.property_values).selectinload(PropertyValue.suggested_value))
        .filter(Property.product_id == product_id)
        .order_by(Property.name)
        .all()
    )


def create_property(session: Session, product_id: int, name: str, type_: str, description: str | None = None) -> Property:
    _require(name, "Property name is required")
    t = normalize_property_type(type_)
    get_product(session, product_id)
    if session.query(Property.id).filter(Property.product_id == product_id, Property.name == name).first():
        raise CatalogConflictError("Property name already exists for this product")
    prop = Property(product_id=product_id, name=name, type=t, description=description)
    session.add(prop)
    session.flush()
    logger.info(f"Property created: {prop.id} '{name}' ({t}) in product {product_id}")
    return prop


def update_property(
    session: Session,
    property_id: int,
    *,
    author: str,
    name: str | None = None,
    type_: str | None = None,
    description: str | None = None,
) -> tuple[Property, int]:
    """Update a property; a name change is propagated to payloads. Returns (property, events rewritten)."""
    t = normalize_property_type(type_) if type_ is not None else None
    prop = session.get(Property, property_id)
    if prop is None:
        raise CatalogNotFoundError("Property not found")
    affected = 0
    if name is not None and name != prop.name:
        affected = rename_property(session, property_id, name, author=author).affected_events
    if t is not None:
        prop.type = t
    if description is not None:
        prop.description = description
    session.flush()
    return prop, affected


# -------------------- Suggested values --------------------

def list_suggested_values(session: Session, product_id: int) -> list[SuggestedValue]:
    get_product(session, product_id)
    return (
        session.query(SuggestedValue)
        .options(selectinload(SuggestedValue.property_values).selectinload(PropertyValue.property))
        .filter(SuggestedValue.product_id == product_id)
        .order_by(SuggestedValue.is_contextual, SuggestedValue.value)  # literal values first
        .all()
    )


def create_suggested_value(session: Session, product_id: int, value: str, is_contextual: bool | None = None) -> SuggestedValue:
    if value is None or value == "":
        raise CatalogValidationError("Value is required")
    get_product(session, product_id)
    if session.query(SuggestedValue.id).filter(SuggestedValue.product_id == product_id, SuggestedValue.value == value).first():
        raise CatalogConflictError("Suggested value already exists for this product")
    sv = SuggestedValue(
        product_id=product_id,
        value=value,
        is_contextual=is_contextual if is_contextual is not None else is_contextual_value(value),
    )
    session.add(sv)
    session.flush()
    logger.info(f"Suggested value created: {sv.id} '{value}' (contextual={sv.is_contextual}) in product {product_id}")
    return sv


def associate_value(session: Session, property_id: int, suggested_value_id: int) -> PropertyValue:
    prop = session.get(Property, property_id)
    if prop is None:
        raise CatalogNotFoundError("Property not found")
    sv = session.get(SuggestedValue, suggested_value_id)
    if sv is None:
        raise CatalogNotFoundError("Suggested value not found")
    if sv.product_id != prop.product_id:
        raise CatalogValidationError("Suggested value does not belong to the same product as the property")
    exists = (
        session.query(PropertyValue.id)
        .filter(PropertyValue.property_id == property_id, PropertyValue.suggested_value_id == suggested_value_id)
        .first()
    )
    if exists:
        raise CatalogConflictError("Association already exists")
    pv = PropertyValue(property_id=property_id, suggested_value_id=suggested_value_id)
    session.add(pv)
    session.flush()
    return pv


# -------------------- Common properties --------------------

def _check_same_product(session: Session, product_id: int, property_id: int | None, suggested_value_id: int) -> SuggestedValue:
    if property_id is not None:
        prop = session.get(Property, property_id)
        if prop is None:
            raise CatalogNotFoundError("Property not found")
        if prop.product_id != product_id:
            raise CatalogValidationError("Property does not belong to this product")
    sv = session.get(SuggestedValue, suggested_value_id)
    if sv is None:
        raise CatalogNotFoundError("Suggested value not found")
    if sv.product_id != product_id:
        raise CatalogValidationError("Suggested value does not belong to this product")
    return sv


def list_common_properties(session: Session, product_id: int) -> list[CommonProperty]:
    get_product(session, product_id)
    return session.query(CommonProperty).filter(CommonProperty.product_id == product_id).order_by(CommonProperty.id).all()


def create_common_property(session: Session, product_id: int, property_id: int, suggested_value_id: int) -> CommonProperty:
    if not property_id:
        raise CatalogValidationError("Property ID is required")
    if not suggested_value_id:
        raise CatalogValidationError("Suggested value ID is required")
    get_product(session, product_id)
    _check_same_product(session, product_id, property_id, suggested_value_id)
    if session.query(CommonProperty.id).filter(CommonProperty.property_id == property_id).first():
        raise CatalogConflictError("A common property already exists for this property. Please update it instead.")
    cp = CommonProperty(product_id=product_id, property_id=property_id, suggested_value_id=suggested_value_id)
    session.add(cp)
    session.flush()
    return cp


def update_common_property(session: Session, common_property_id: int, suggested_value_id: int) -> CommonProperty:
    if not suggested_value_id:
        raise CatalogValidationError("Suggested value ID is required")
    cp = session.get(CommonProperty, common_property_id)
    if cp is None:
        raise CatalogNotFoundError("Common property not found")
    cp.suggested_value = _check_same_product(session, cp.product_id, None, suggested_value_id)
    session.flush()
    return cp


def delete_common_property(session: Session, common_property_id: int) -> None:
    cp = session.get(CommonProperty, common_property_id)
    if cp is None:
        raise CatalogNotFoundError("Common property not found")
    session.delete(cp)
    session.flush()
