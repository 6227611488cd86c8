import logging
from typing import Optional

import httpx
from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel

from ..cache import get_exchange_rates_cached, set_exchange_rates_cache
from ..config import EXCHANGE_RATE_API_URL

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/currency", tags=["Currency"])

RATES_TTL_SECONDS = 3600


class ExchangeRateResponse(BaseModel):
    rate: float
    base: str
    target: str
    date: Optional[str] = None


async def fetch_exchange_rates(base: str) -> dict:
    """Latest rate table for `base` as {"base", "date", "rates"}"""
    async with httpx.AsyncClient(timeout=10.0) as client:
        response = await client.get(f"{EXCHANGE_RATE_API_URL.rstrip('/')}/{base}")
        response.raise_for_status()
        data = response.json()
    return {"base": data.get("base", base), "date": data.get("date"), "rates": data.get("rates") or {}}


@router.get("/exchange-rate", response_model=ExchangeRateResponse)
async def get_exchange_rate(
    base: str = Query("NGN", min_length=3, max_length=3),
    target: str = Query("USD", min_length=3, max_length=3),
):
    base = base.upper()
    target = target.upper()

    table = get_exchange_rates_cached(base)
    if table is None:
        try:
            table = await fetch_exchange_rates(base)
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"❌ Currency API error for {base}: {e}")
            raise HTTPException(status_code=502, detail="Failed to fetch exchange rate") from e
        set_exchange_rates_cache(base, table, ttl=RATES_TTL_SECONDS)

    rate = table.get("rates", {}).get(target)
    if rate is None:
        raise HTTPException(status_code=400, detail=f"Exchange rate not found for {base} to {target}")

    return ExchangeRateResponse(rate=rate, base=table.get("base", base), target=target, date=table.get("date"))
