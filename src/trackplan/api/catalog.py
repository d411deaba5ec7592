from __future__ import annotations
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from trackplan.api.deps import get_author, get_db
from trackplan.api.serializers import (
    common_property_out, page_out, product_out, property_out, result_out, value_out,
)
from trackplan.catalog import library
from trackplan.catalog.impact import delete_property, delete_suggested_value, property_impact, suggested_value_impact
from trackplan.catalog.merge import merge_suggested_values
from trackplan.catalog.rename import ValueConflict, rename_suggested_value
from trackplan.validation.catalog import (
    AssociationIn, CommonPropertyIn, CommonPropertyUpdateIn, PageIn, ProductIn,
    PropertyIn, PropertyUpdateIn, SuggestedValueIn,
)

router = APIRouter(tags=["catalog"])


# -------------------- Products & pages --------------------

@router.post("/products", status_code=201)
def create_product(body: ProductIn, db: Session = Depends(get_db)):
    with db.begin():
        product = library.create_product(db, body.name, body.description)
    return {"success": True, "data": product_out(product)}


@router.delete("/products/{product_id}")
def delete_product(product_id: int, db: Session = Depends(get_db)):
    with db.begin():
        library.delete_product(db, product_id)
    return {"success": True, "message": "Product deleted successfully"}


@router.post("/products/{product_id}/pages", status_code=201)
def create_page(product_id: int, body: PageIn, db: Session = Depends(get_db)):
    with db.begin():
        page = library.create_page(db, product_id, body.name, body.url)
    return {"success": True, "data": page_out(page)}


# -------------------- Properties --------------------

@router.get("/products/{product_id}/properties")
def list_properties(product_id: int, db: Session = Depends(get_db)):
    rows = [property_out(p, with_values=True) for p in library.list_properties(db, product_id)]
    return {"success": True, "data": rows, "count": len(rows)}


@router.post("/products/{product_id}/properties", status_code=201)
def create_property(product_id: int, body: PropertyIn, db: Session = Depends(get_db)):
    with db.begin():
        prop = library.create_property(db, product_id, body.name, body.type, body.description)
    return {"success": True, "data": property_out(prop)}


@router.put("/properties/{property_id}")
def update_property(property_id: int, body: PropertyUpdateIn, db: Session = Depends(get_db), author: str = Depends(get_author)):
    with db.begin():
        prop, affected = library.update_property(
            db, property_id, author=author, name=body.name, type_=body.type, description=body.description
        )
    return {"success": True, "data": property_out(prop), "affectedEvents": affected}


@router.get("/properties/{property_id}/impact")
def get_property_impact(property_id: int, db: Session = Depends(get_db)):
    return {"success": True, "data": property_impact(db, property_id).to_dict()}


@router.delete("/properties/{property_id}")
def remove_property(property_id: int, db: Session = Depends(get_db), author: str = Depends(get_author)):
    with db.begin():
        result = delete_property(db, property_id, author=author)
    return {"success": True, "message": "Property deleted successfully", "affectedEvents": result.affected_events}


@router.post("/properties/{property_id}/suggested-values", status_code=201)
def associate_value(property_id: int, body: AssociationIn, db: Session = Depends(get_db)):
    with db.begin():
        pv = library.associate_value(db, property_id, body.suggested_value_id)
    return {"success": True, "data": {"property_id": pv.property_id, "suggested_value_id": pv.suggested_value_id}}


# -------------------- Suggested values --------------------

@router.get("/products/{product_id}/suggested-values")
def list_suggested_values(product_id: int, db: Session = Depends(get_db)):
    rows = [value_out(sv, with_properties=True) for sv in library.list_suggested_values(db, product_id)]
    return {"success": True, "data": rows, "count": len(rows)}


@router.post("/products/{product_id}/suggested-values", status_code=201)
def create_suggested_value(product_id: int, body: SuggestedValueIn, db: Session = Depends(get_db)):
    with db.begin():
        sv = library.create_suggested_value(db, product_id, body.value, body.is_contextual)
    return {"success": True, "data": value_out(sv)}


@router.put("/suggested-values/{value_id}")
def update_suggested_value(value_id: int, body: SuggestedValueIn, db: Session = Depends(get_db), author: str = Depends(get_author)):
    with db.begin():
        result = rename_suggested_value(db, value_id, body.value, author=author, is_contextual=body.is_contextual)
    if isinstance(result, ValueConflict):
        return JSONResponse(status_code=409, content={
            "success": False,
            "error": "suggested_value_exists",
            "message": "Suggested value already exists for this product",
            "conflictData": result.to_dict(),
        })
    return {"success": True, "data": result_out(result)}


@router.post("/suggested-values/{source_id}/merge/{target_id}")
def merge_values(source_id: int, target_id: int, db: Session = Depends(get_db), author: str = Depends(get_author)):
    with db.begin():
        result = merge_suggested_values(db, source_id, target_id, author=author)
    return {"success": True, "message": "Suggested values merged successfully", "result": result_out(result)}


@router.get("/suggested-values/{value_id}/impact")
def get_value_impact(value_id: int, db: Session = Depends(get_db)):
    return {"success": True, "data": suggested_value_impact(db, value_id).to_dict()}


@router.delete("/suggested-values/{value_id}")
def remove_suggested_value(value_id: int, db: Session = Depends(get_db), author: str = Depends(get_author)):
    with db.begin():
        result = delete_suggested_value(db, value_id, author=author)
    return {"success": True, "message": "Suggested value deleted successfully", "affectedEvents": result.affected_events}


# -------------------- Common properties --------------------

@router.get("/products/{product_id}/common-properties")
def list_common_properties(product_id: int, db: Session = Depends(get_db)):
    rows = [common_property_out(cp) for cp in library.list_common_properties(db, product_id)]
    return {"success": True, "data": rows, "count": len(rows)}


@router.post("/products/{product_id}/common-properties", status_code=201)
def create_common_property(product_id: int, body: CommonPropertyIn, db: Session = Depends(get_db)):
    with db.begin():
        cp = library.create_common_property(db, product_id, body.property_id, body.suggested_value_id)
    return {"success": True, "data": common_property_out(cp)}


@router.put("/common-properties/{common_property_id}")
def update_common_property(common_property_id: int, body: CommonPropertyUpdateIn, db: Session = Depends(get_db)):
    with db.begin():
        cp = library.update_common_property(db, common_property_id, body.suggested_value_id)
    return {"success": True, "data": common_property_out(cp)}


@router.delete("/common-properties/{common_property_id}")
def delete_common_property(common_property_id: int, db: Session = Depends(get_db)):
    with db.begin():
        library.delete_common_property(db, common_property_id)
    return {"success": True, "message": "Common property deleted successfully"}
