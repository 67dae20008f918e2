"""
Triangle enumeration over the selected token universe.

Pure and deterministic: the same start token, mid tokens and cap always
produce the same ordered list with the same ids.
"""

from typing import Iterable, List

from .exceptions import InvalidInput
from .types import RouteCandidate, Token


def triangle_id(start: Token, mid1: Token, mid2: Token) -> str:
    """Stable id such as "USDC->AERO->WETH->USDC"."""
    return f"{start.symbol}->{mid1.symbol}->{mid2.symbol}->{start.symbol}"


def generate_triangles(
    start_token: Token, mid_tokens: Iterable[Token], max_triangles: int
) -> List[RouteCandidate]:
    """
    Enumerate ordered (mid1, mid2) triangles starting and ending at start_token.

    Mid tokens are de-duplicated, the start token is dropped from them, and
    the rest are sorted by symbol. Pairs are emitted in lexicographic
    (mid1, then mid2) order with mid1 != mid2.

    Args:
        start_token: Token the walk starts and ends with
        mid_tokens: Candidate intermediate tokens
        max_triangles: Maximum number of triangles to return

    Returns:
        List of RouteCandidate, at most max_triangles long
    """
    routes: List[RouteCandidate] = []
    if max_triangles <= 0:
        return routes

    unique = {}
    for token in mid_tokens:
        if token.symbol == start_token.symbol or token.address == start_token.address:
            continue
        unique.setdefault(token.symbol, token)
    sorted_mids = sorted(unique.values(), key=lambda t: t.symbol)

    for mid1 in sorted_mids:
        for mid2 in sorted_mids:
            if mid1.symbol == mid2.symbol:
                continue
            routes.append(
                RouteCandidate(
                    id=triangle_id(start_token, mid1, mid2),
                    tokens=(start_token, mid1, mid2, start_token),
                )
            )
            if len(routes) >= max_triangles:
                return routes

    return routes


def validate_triangle(route: RouteCandidate) -> None:
    """
    Check the closed-walk invariant.

    Raises:
        InvalidInput: If the route does not have four tokens or does not
            end where it starts
    """
    tokens = route.tokens
    if len(tokens) != 4:
        raise InvalidInput(
            f"Triangle {route.id} must have 4 tokens, got {len(tokens)}",
            details={"route": route.id},
        )
    first, last = tokens[0], tokens[3]
    if first.symbol != last.symbol or first.address != last.address:
        raise InvalidInput(
            f"Triangle {route.id} must end at its start token "
            f"({first.symbol} != {last.symbol})",
            details={"route": route.id},
        )
