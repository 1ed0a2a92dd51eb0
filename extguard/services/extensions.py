from __future__ import annotations

import logging
import re
from typing import Any

import sqlalchemy as sa
from sqlalchemy.orm import Session

from extguard.models.custom_extension import CustomExtension
from extguard.models.fixed_extension import FixedExtension
from extguard.presets import DEFAULT_FIXED_EXTENSIONS
from extguard.services.classifier import normalize_extension
from extguard.settings import get_settings

log = logging.getLogger(__name__)
settings = get_settings()

EXTENSION_RE = re.compile(r"^[a-zA-Z0-9]+$")


class ExtensionServiceError(Exception):
    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


def validate_extension(extension: str | None) -> bool:
    if extension is None or not extension.strip():
        return False
    value = extension.strip()
    if len(value) > settings.max_extension_length:
        return False
    return bool(EXTENSION_RE.match(value))


def _require_valid(extension: str | None) -> str:
    if not validate_extension(extension):
        raise ExtensionServiceError(
            400,
            f"Invalid extension. Use up to {settings.max_extension_length} letters or digits.",
        )
    return normalize_extension(extension or "")


def fixed_to_dict(rule: FixedExtension) -> dict[str, Any]:
    return {
        "id": rule.id,
        "extension": rule.extension,
        "description": rule.description,
        "blocked": rule.is_blocked,
    }


def custom_to_dict(rule: CustomExtension) -> dict[str, Any]:
    return {"id": rule.id, "extension": rule.extension}


def get_fixed(db: Session, extension: str) -> FixedExtension | None:
    ext = normalize_extension(extension)
    return db.query(FixedExtension).filter(FixedExtension.extension == ext).one_or_none()


def get_custom(db: Session, extension: str) -> CustomExtension | None:
    ext = normalize_extension(extension)
    return db.query(CustomExtension).filter(CustomExtension.extension == ext).one_or_none()


def list_fixed(db: Session) -> list[FixedExtension]:
    return db.query(FixedExtension).order_by(FixedExtension.extension).all()


def list_custom(db: Session) -> list[CustomExtension]:
    return db.query(CustomExtension).order_by(CustomExtension.created_at, CustomExtension.id).all()


def add_fixed(
    db: Session,
    extension: str,
    description: str | None = None,
    limit: int | None = None,
) -> FixedExtension:
    ext = _require_valid(extension)
    limit = settings.max_fixed_extensions if limit is None else limit

    if db.query(FixedExtension).count() >= limit:
        raise ExtensionServiceError(400, f"At most {limit} fixed extensions are allowed.")
    if get_fixed(db, ext):
        raise ExtensionServiceError(409, "Fixed extension already exists.")
    if get_custom(db, ext):
        raise ExtensionServiceError(409, "Extension already exists as a custom extension.")

    rule = FixedExtension(extension=ext, description=description or "", is_blocked=False)
    db.add(rule)
    db.commit()
    db.refresh(rule)
    log.info(f"Added fixed extension {ext}")
    return rule


def add_custom(db: Session, extension: str, limit: int | None = None) -> CustomExtension:
    ext = _require_valid(extension)
    limit = settings.max_custom_extensions if limit is None else limit

    if db.query(CustomExtension).count() >= limit:
        raise ExtensionServiceError(400, f"At most {limit} custom extensions are allowed.")
    if get_custom(db, ext):
        raise ExtensionServiceError(409, "Custom extension already exists.")
    if get_fixed(db, ext):
        raise ExtensionServiceError(409, "Extension already exists as a fixed extension.")

    rule = CustomExtension(extension=ext)
    db.add(rule)
    db.commit()
    db.refresh(rule)
    log.info(f"Added custom extension {ext}")
    return rule


def set_fixed_blocked(db: Session, extension: str, is_blocked: bool) -> FixedExtension:
    rule = get_fixed(db, extension)
    if rule is None:
        raise ExtensionServiceError(
            404, f"Fixed extension not found: {normalize_extension(extension)}"
        )

    rule.is_blocked = is_blocked
    db.add(rule)
    db.commit()
    db.refresh(rule)
    log.info(f"Fixed extension {rule.extension} is now {'blocked' if is_blocked else 'allowed'}")
    return rule


def delete_fixed(db: Session, rule_id: int) -> None:
    rule = db.get(FixedExtension, rule_id)
    if rule is None:
        raise ExtensionServiceError(404, f"Fixed extension not found: #{rule_id}")
    ext = rule.extension
    db.delete(rule)
    db.commit()
    log.info(f"Deleted fixed extension {ext}")


def delete_custom(db: Session, rule_id: int) -> None:
    rule = db.get(CustomExtension, rule_id)
    if rule is None:
        raise ExtensionServiceError(404, f"Custom extension not found: #{rule_id}")
    ext = rule.extension
    db.delete(rule)
    db.commit()
    log.info(f"Deleted custom extension {ext}")


def delete_custom_by_extension(db: Session, extension: str) -> None:
    rule = get_custom(db, extension)
    if rule is None:
        raise ExtensionServiceError(
            404, f"Custom extension not found: {normalize_extension(extension)}"
        )
    ext = rule.extension
    db.delete(rule)
    db.commit()
    log.info(f"Deleted custom extension {ext}")


def delete_all_custom(db: Session) -> int:
    deleted = db.execute(sa.delete(CustomExtension)).rowcount
    db.commit()
    log.info(f"Deleted {deleted} custom extensions")
    return deleted


def reset_fixed(db: Session) -> list[FixedExtension]:
    """Replace the fixed catalog with the defaults, all allowed."""
    db.execute(sa.delete(FixedExtension))
    for preset in DEFAULT_FIXED_EXTENSIONS:
        db.add(
            FixedExtension(
                extension=preset.extension,
                description=preset.description,
                is_blocked=False,
            )
        )
    db.commit()
    log.info("Fixed extensions reset to defaults")
    return list_fixed(db)


def seed_default_extensions(db: Session) -> int:
    if db.query(FixedExtension).count() > 0:
        return 0
    reset_fixed(db)
    return len(DEFAULT_FIXED_EXTENSIONS)


def is_blocked(db: Session, extension: str) -> bool:
    fixed = get_fixed(db, extension)
    if fixed is not None and fixed.is_blocked:
        return True
    return get_custom(db, extension) is not None


def extension_type(db: Session, extension: str) -> str | None:
    if get_fixed(db, extension) is not None:
        return "fixed"
    if get_custom(db, extension) is not None:
        return "custom"
    return None
