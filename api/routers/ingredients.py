from fastapi import APIRouter, Depends, HTTPException

from api.engine import get_orchestrator
from api.models import IngredientCheckRequest, IngredientListRequest
from compliance.allergens.models import AllergenSummary
from compliance.gras.models import GRASComplianceReport
from compliance.ingredient_orchestrator import (
    IngredientComplianceOrchestrator,
    IngredientComplianceResult,
)
from compliance.ndi.models import NDIComplianceReport

router = APIRouter(prefix="/api/ingredients", tags=["ingredients"])


@router.post("/check", response_model=IngredientComplianceResult)
async def check_ingredients(
    data: IngredientCheckRequest,
    orchestrator: IngredientComplianceOrchestrator = Depends(get_orchestrator),
):
    """Run the checks that apply to the product category (or the explicit ``checks`` list)."""
    try:
        return await orchestrator.evaluate(data.ingredients, data.productCategory, data.checks)
    except (TypeError, ValueError) as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/allergens", response_model=AllergenSummary)
def check_allergens(
    data: IngredientListRequest,
    orchestrator: IngredientComplianceOrchestrator = Depends(get_orchestrator),
):
    return orchestrator.check_allergens(data.ingredients)


@router.post("/gras", response_model=GRASComplianceReport)
def check_gras(
    data: IngredientListRequest,
    orchestrator: IngredientComplianceOrchestrator = Depends(get_orchestrator),
):
    return orchestrator.check_gras(data.ingredients)


@router.post("/ndi", response_model=NDIComplianceReport)
def check_ndi(
    data: IngredientListRequest,
    orchestrator: IngredientComplianceOrchestrator = Depends(get_orchestrator),
):
    return orchestrator.check_ndi(data.ingredients)
