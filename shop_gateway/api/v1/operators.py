"""GET /v1/me - profile of the authenticated operator"""

from fastapi import APIRouter, Depends

from shop_gateway.api.v1.schemas import OperatorResponse
from shop_gateway.api.dependencies import get_operator
from shop_gateway.domain.models import OperatorContext

router = APIRouter()


@router.get("/me", response_model=OperatorResponse)
def get_me(operator: OperatorContext = Depends(get_operator)):
    return OperatorResponse(id=operator.operator_id, name=operator.name, role=operator.role.value)
