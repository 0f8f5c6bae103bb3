import logging

from fastapi import Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.models.log import Log

logger = logging.getLogger(__name__)


def client_ip(request: Request):
    return request.client.host if request.client else None


def write_log(db: Session, *, user_id, action, resource, status="SUCCESS", ip=None, meta=None):
    entry = Log(user_id=user_id, action=action, resource=resource, status=status, ip=ip, meta=meta or {})
    db.add(entry)
    try:
        db.commit()
    except SQLAlchemyError:
        # The action itself already committed; a lost audit row must not fail the request
        db.rollback()
        logger.exception("Failed to write audit log action=%s user_id=%s", action, user_id)
