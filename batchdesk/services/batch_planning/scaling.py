import logging
from typing import Optional

from ...repositories import ManufactureRepository, SqlManufactureRepository
from ...utils.error_messages import ErrorMessages as EM
from ..base_service import BaseService
from ..results import ErrorCode, ServiceResult
from .types import ScaledBatch, ScaledIngredient

logger = logging.getLogger(__name__)


class BatchScalingService(BaseService):
    """Scale a product's manufacture template to a requested batch size."""

    def __init__(self, manufacture_repository: Optional[ManufactureRepository] = None):
        super().__init__()
        self.manufacture_repository = manufacture_repository or SqlManufactureRepository()

    def calculate_batch_by_size(self, product_code: str, desired_batch_size: float) -> ServiceResult:
        return self.run_guarded(
            'calculate_batch_by_size',
            lambda: self._scale(product_code, desired_batch_size),
        )

    def _scale(self, product_code: str, desired_batch_size: float) -> ServiceResult:
        if desired_batch_size is None or desired_batch_size <= 0:
            return ServiceResult.fail(
                ErrorCode.INVALID_BATCH_SIZE,
                EM.BATCH_SIZE_NOT_POSITIVE,
                params={'desiredBatchSize': desired_batch_size},
            )

        template = self.manufacture_repository.get_manufacture_template(product_code)
        if template is None:
            return ServiceResult.fail(
                ErrorCode.MANUFACTURE_TEMPLATE_NOT_FOUND,
                EM.TEMPLATE_NOT_FOUND.format(code=product_code),
                params={'productCode': product_code},
            )

        original_size = float(template.batch_size or 0)
        if original_size <= 0:
            return ServiceResult.fail(
                ErrorCode.INVALID_BATCH_SIZE,
                EM.TEMPLATE_BATCH_SIZE_NOT_POSITIVE.format(code=product_code),
                params={'productCode': product_code},
            )

        for ingredient in template.ingredients:
            if ingredient.amount is None or ingredient.amount < 0:
                return ServiceResult.fail(
                    ErrorCode.INVALID_INGREDIENT_AMOUNT,
                    EM.INGREDIENT_AMOUNT_NEGATIVE.format(code=ingredient.product_code),
                    params={'ingredientCode': ingredient.product_code},
                )

        scale_factor = float(desired_batch_size) / original_size
        scaled = ScaledBatch(
            product_code=template.product_code,
            product_name=template.product_name,
            original_batch_size=original_size,
            new_batch_size=float(desired_batch_size),
            scale_factor=round(scale_factor, 6),
            ingredients=[
                ScaledIngredient(
                    product_code=ingredient.product_code,
                    product_name=ingredient.product_name,
                    original_amount=float(ingredient.amount),
                    calculated_amount=round(float(ingredient.amount) * scale_factor, 4),
                    price=float(ingredient.price) if ingredient.price is not None else None,
                )
                for ingredient in template.ingredients
            ],
        )
        logger.info(f"Scaled template {product_code} from {original_size} to {desired_batch_size} (x{scale_factor:.4f})")
        return ServiceResult.ok(scaled)
