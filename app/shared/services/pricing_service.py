# app/shared/services/pricing_service.py
"""
Calculadora de precios de almacenamiento

precio = espacio_requerido * precio_por_sqft * meses * multiplicador_tipo
"""
import re
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Optional, Union

from app.config.settings import settings

STORAGE_TYPE_MULTIPLIERS: Dict[str, float] = {
    "cold_storage": 1.5,
    "hazmat": 2.0,
    "climate_controlled": 1.3,
    "dry_storage": 1.0,
}

_INTEGER = re.compile(r"\d+")


class PricingCalculator:
    """Cálculo puro, sin efectos sobre la cotización"""

    @staticmethod
    def duration_months(duration: Optional[str]) -> int:
        """'6 months' -> 6, '2 years' -> 2, texto sin número -> 1"""
        if not duration:
            return 1
        match = _INTEGER.search(duration)
        months = int(match.group()) if match else 1
        if months <= 0:
            months = 1
        return months

    @staticmethod
    def storage_multiplier(storage_type: Optional[str]) -> float:
        return STORAGE_TYPE_MULTIPLIERS.get(storage_type or "", 1.0)

    @classmethod
    def calculate(
        cls,
        required_space: float,
        price_per_sqft: Optional[Union[float, Decimal]],
        duration: Optional[str],
        storage_type: Optional[str]
    ) -> Dict[str, float]:
        rate = float(price_per_sqft) if price_per_sqft is not None else settings.default_price_per_sqft
        months = cls.duration_months(duration)
        multiplier = cls.storage_multiplier(storage_type)
        raw = Decimal(str(required_space)) * Decimal(str(rate)) * months * Decimal(str(multiplier))
        estimated = raw.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        return {
            "required_space": float(required_space),
            "price_per_sqft": rate,
            "duration_months": months,
            "storage_type_multiplier": multiplier,
            "estimated_price": float(estimated),
        }
