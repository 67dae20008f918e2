"""
Native token price discovery for gas costing.
"""

from typing import Mapping, Optional

from .fixed_point import from_units
from .hop_options import build_hop_options
from .registry import FeePrefs
from .types import HopQuoteResult, Token
from .utils import get_logger
from .venues.base import VenueQuoter, summarize_error

logger = get_logger(__name__)


async def derive_native_to_quote_price(
    venues: Mapping[str, VenueQuoter],
    quote_token: Token,
    native_token: Token,
    fee_prefs: Optional[FeePrefs] = None,
) -> float:
    """
    Price one native token in quote token terms.

    Quotes 1 native unit through the native->quote options in preference
    order; the first positive answer wins.

    Returns:
        Price as a float, or 0.0 when no option produced a quote
    """
    if native_token.address == quote_token.address:
        return 1.0

    build = await build_hop_options(
        native_token,
        quote_token,
        venues,
        fee_prefs,
        quote_symbol=quote_token.symbol,
        native_symbol=native_token.symbol,
    )
    one_native = 10**native_token.decimals

    for option in build.options:
        try:
            outcome = await option.quote(one_native)
        except Exception as e:
            logger.debug(f"Price quote via {option.label} failed: {summarize_error(e)}")
            continue
        if isinstance(outcome, HopQuoteResult) and outcome.amount_out > 0:
            price = float(from_units(outcome.amount_out, quote_token.decimals))
            logger.info(
                f"{native_token.symbol}/{quote_token.symbol} price {price:.6f} via {option.label}"
            )
            return price

    logger.warning(
        f"Could not price {native_token.symbol} in {quote_token.symbol}; gas costs unknown"
    )
    return 0.0
