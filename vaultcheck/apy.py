from __future__ import annotations

import requests

from vaultcheck import log


DEFILLAMA_POOLS_URL = "https://yields.llama.fi/pools"


def get_apy_by_pool_id(pool_id: str | None, field: str, timeout: float = 10.0) -> float | None:
    """
    Look up a yield field for a DeFi Llama pool.

    Returns None when the pool id is empty, the pool is unknown, or the
    request fails, so callers can fall back to a fixed figure.
    """
    if not pool_id or not field:
        return None

    try:
        response = requests.get(DEFILLAMA_POOLS_URL, timeout=timeout)
        response.raise_for_status()
        pools = response.json()["data"]
    except (requests.RequestException, KeyError, ValueError) as e:
        log.error(f"Error fetching pool data: {e}")
        return None

    pool_id = str(pool_id).strip()
    matching_pool = next((pool for pool in pools if pool.get("pool") == pool_id), None)
    if matching_pool is None:
        return None

    candidate_fields = [str(field).strip()]
    if candidate_fields[0] == "apyReward":
        candidate_fields.extend(["apy", "apyBase", "apyMean30d"])

    for f in candidate_fields:
        value = matching_pool.get(f)
        if value is None:
            continue
        try:
            return float(value)
        except (TypeError, ValueError):
            continue
    return None


def resolve_apy(fixed_apy: float, pool_id: str | None = None, field: str = "apy") -> float:
    # APY is not available on-chain
    fetched = get_apy_by_pool_id(pool_id, field)
    return fixed_apy if fetched is None else round(fetched, 3)
