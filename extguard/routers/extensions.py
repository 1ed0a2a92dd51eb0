from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from extguard.db.session import get_db
from extguard.services import extensions as svc
from extguard.services.classifier import normalize_extension
from extguard.services.extensions import ExtensionServiceError

router = APIRouter(prefix="/api/extensions", tags=["extensions"])


class ExtensionRequest(BaseModel):
    extension: str
    description: str | None = None


class ToggleRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    extension: str
    is_blocked: bool = Field(alias="isBlocked")


@router.get("/fixed")
def list_fixed(db: Session = Depends(get_db)):
    return {"success": True, "data": [svc.fixed_to_dict(r) for r in svc.list_fixed(db)]}


@router.put("/fixed")
def toggle_fixed(payload: ToggleRequest, db: Session = Depends(get_db)):
    rule = svc.set_fixed_blocked(db, payload.extension, payload.is_blocked)
    return {"success": True, "data": {"extension": rule.extension, "isBlocked": rule.is_blocked}}


@router.post("/fixed")
def add_fixed(payload: ExtensionRequest, db: Session = Depends(get_db)):
    rule = svc.add_fixed(db, payload.extension, payload.description)
    return {"success": True, "data": svc.fixed_to_dict(rule)}


@router.post("/fixed/reset")
def reset_fixed(db: Session = Depends(get_db)):
    svc.reset_fixed(db)
    return {"success": True, "message": "Fixed extensions reset to defaults."}


@router.delete("/fixed/{rule_id}")
def delete_fixed(rule_id: int, db: Session = Depends(get_db)):
    svc.delete_fixed(db, rule_id)
    return {"success": True}


@router.get("/custom")
def list_custom(db: Session = Depends(get_db)):
    return {"success": True, "data": [svc.custom_to_dict(r) for r in svc.list_custom(db)]}


@router.post("/custom")
def add_custom(payload: ExtensionRequest, db: Session = Depends(get_db)):
    rule = svc.add_custom(db, payload.extension)
    return {"success": True, "data": svc.custom_to_dict(rule)}


# Must be registered before /custom/{rule_id}
@router.delete("/custom/all")
def delete_all_custom(db: Session = Depends(get_db)):
    deleted = svc.delete_all_custom(db)
    return {"success": True, "data": {"deleted": deleted}}


@router.delete("/custom/extension/{extension:path}")
def delete_custom_by_extension(extension: str, db: Session = Depends(get_db)):
    svc.delete_custom_by_extension(db, extension)
    return {"success": True}


@router.delete("/custom/{rule_id}")
def delete_custom(rule_id: int, db: Session = Depends(get_db)):
    svc.delete_custom(db, rule_id)
    return {"success": True}


@router.get("/check/{extension:path}")
def check_extension(extension: str, db: Session = Depends(get_db)):
    return {"success": True, "data": svc.is_blocked(db, extension)}


@router.get("/type/{extension:path}")
def extension_type(extension: str, db: Session = Depends(get_db)):
    kind = svc.extension_type(db, extension)
    if kind is None:
        raise ExtensionServiceError(404, f"Extension not found: {normalize_extension(extension)}")
    return {"success": True, "data": kind}
