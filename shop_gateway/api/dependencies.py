"""Dependency injection for FastAPI endpoints"""

from typing import Optional
from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session
from shop_gateway.domain.models import OperatorContext, OperatorRole
from shop_gateway.domain.exceptions import AuthenticationError, RemoteOperationError
from shop_gateway.api.errors import to_http_exception
from shop_gateway.infrastructure.database.session import get_db
from shop_gateway.infrastructure.database.repositories import OperatorRepository
from shop_gateway.infrastructure.drafts import DraftStore


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_draft_store() -> DraftStore:
    """Provide local draft quote store"""
    return DraftStore()


def get_operator(
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db),
) -> OperatorContext:
    """
    Resolve the operator behind a bearer token.

    Any active operator may use every endpoint; role is carried along but not
    checked.
    """
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise to_http_exception(AuthenticationError("Not authenticated"))

    try:
        operator = OperatorRepository(db).get_by_token(token.strip())
    except RemoteOperationError as e:
        raise to_http_exception(e)

    if operator is None or not operator.active:
        raise to_http_exception(AuthenticationError("Not authenticated"))

    return OperatorContext(
        operator_id=operator.id,
        name=operator.name,
        role=OperatorRole(operator.role),
    )
