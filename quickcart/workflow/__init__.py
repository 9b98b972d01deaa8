"""Cart automation workflow and its composable steps."""

from .cart import CartRequest, CartRunResult, CartState, CartWorkflow
from .steps import DEFAULT_STEPS, BlinkitCartSteps, CartSteps, ListingCartSteps

__all__ = [
    "BlinkitCartSteps",
    "CartRequest",
    "CartRunResult",
    "CartState",
    "CartSteps",
    "CartWorkflow",
    "DEFAULT_STEPS",
    "ListingCartSteps",
]
