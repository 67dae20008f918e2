"""
Token registry, fee preference and stable-pair loading.

All files are JSON:

    tokens.json         [{"symbol": "USDC", "address": "0x...", "decimals": 6}, ...]
    fee_prefs.json      {"USDC/WETH": [500, 3000], ...}
    stable_pairs.json   ["USDC/DAI", ...]
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Sequence, Union

from web3 import Web3

from .exceptions import RegistryError
from .types import Token
from .utils import get_logger

logger = get_logger(__name__)

MAX_TOKEN_DECIMALS = 36

DEFAULT_STABLE_SYMBOLS = ("USDC", "USDT", "DAI", "USDE", "USDBC", "LUSD", "TUSD")

FeePrefs = Dict[str, List[int]]


def _read_json(path: Union[str, Path]) -> Any:
    path_obj = Path(path)
    if not path_obj.exists():
        raise RegistryError(f"File not found: {path}", path=str(path))
    try:
        with open(path_obj, "r") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise RegistryError(f"Failed to parse JSON in {path}: {e}", path=str(path)) from e


def pair_key(a: str, b: str) -> str:
    """Direction-independent pair key ("DAI/USDC" for either order)."""
    return "/".join(sorted([a.upper(), b.upper()]))


# ============================================================================
# Token registry
# ============================================================================


def parse_tokens(entries: Any, source: str = "<memory>") -> List[Token]:
    """
    Validate raw registry entries and build Token records.

    Symbols are upper-cased; addresses are checksummed.

    Raises:
        RegistryError: On missing/duplicate symbols or addresses, invalid
            addresses, or decimals outside [0, 36]
    """
    if not isinstance(entries, list):
        raise RegistryError(f"Token registry at {source} must be a list", path=source)

    symbols = set()
    addresses = set()
    tokens: List[Token] = []

    for idx, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise RegistryError(f"Token[{idx}] must be an object", path=source)

        symbol = str(entry.get("symbol") or "").strip().upper()
        address = str(entry.get("address") or "").strip()
        decimals = entry.get("decimals")

        if not symbol:
            raise RegistryError(f"Token[{idx}] has an invalid symbol", path=source)
        if symbol in symbols:
            raise RegistryError(f"Duplicate token symbol: {symbol}", path=source)
        if not Web3.is_address(address):
            raise RegistryError(
                f"Token {symbol} has invalid address: {address}", path=source
            )
        checksummed = Web3.to_checksum_address(address)
        if checksummed in addresses:
            raise RegistryError(f"Duplicate token address: {address}", path=source)
        if (
            isinstance(decimals, bool)
            or not isinstance(decimals, int)
            or decimals < 0
            or decimals > MAX_TOKEN_DECIMALS
        ):
            raise RegistryError(
                f"Token {symbol} has invalid decimals: {decimals!r}", path=source
            )

        symbols.add(symbol)
        addresses.add(checksummed)
        tokens.append(Token(symbol=symbol, address=checksummed, decimals=decimals))

    return tokens


def load_tokens(path: Union[str, Path]) -> List[Token]:
    """Load and validate the token registry file."""
    tokens = parse_tokens(_read_json(path), source=str(path))
    logger.info(f"Loaded {len(tokens)} tokens from {path}")
    return tokens


def select_token_subset(
    tokens: Sequence[Token], subset: Optional[Iterable[str]], start_symbol: str
) -> List[Token]:
    """
    Restrict the universe to the given symbols, preserving registry order.

    Raises:
        RegistryError: If the subset omits the start token or names a
            symbol missing from the registry
    """
    if not subset:
        return list(tokens)

    wanted = {s.strip().upper() for s in subset if s.strip()}
    if start_symbol.upper() not in wanted:
        raise RegistryError(f"Token subset must include {start_symbol}")

    known = {t.symbol for t in tokens}
    missing = sorted(wanted - known)
    if missing:
        raise RegistryError(f"Tokens not found in registry: {', '.join(missing)}")

    return [t for t in tokens if t.symbol in wanted]


def find_token(tokens: Sequence[Token], symbol: str) -> Optional[Token]:
    """Look up a token by (case-insensitive) symbol."""
    upper = symbol.upper()
    for token in tokens:
        if token.symbol == upper:
            return token
    return None


# ============================================================================
# Fee preferences
# ============================================================================


def parse_fee_prefs(raw: Any, source: str = "<memory>") -> FeePrefs:
    """Validate a {"A/B": [fee, ...]} mapping."""
    if not isinstance(raw, dict):
        raise RegistryError(
            f"Fee config at {source} must be an object mapping pair->fee[]",
            path=source,
        )

    prefs: FeePrefs = {}
    for pair_raw, fees in raw.items():
        pair = str(pair_raw).strip().upper()
        if "/" not in pair:
            raise RegistryError(f"Invalid fee pair key: {pair_raw}", path=source)
        if not isinstance(fees, list) or not all(
            isinstance(f, int) and not isinstance(f, bool) and f > 0 for f in fees
        ):
            raise RegistryError(f"Invalid fee list for pair: {pair_raw}", path=source)
        prefs[pair] = list(dict.fromkeys(fees))
    return prefs


def load_fee_prefs(path: Optional[Union[str, Path]]) -> FeePrefs:
    """Load fee preferences; no path means no preferences."""
    if not path:
        return {}
    prefs = parse_fee_prefs(_read_json(path), source=str(path))
    logger.info(f"Loaded fee preferences for {len(prefs)} pairs")
    return prefs


def get_pair_fee_order(
    token_in: str, token_out: str, defaults: Sequence[int], prefs: FeePrefs
) -> List[int]:
    """
    Fee tiers to probe for a pair: preferred tiers first, then the defaults.

    A preference registered for either direction applies.
    """
    direct = f"{token_in.upper()}/{token_out.upper()}"
    reverse = f"{token_out.upper()}/{token_in.upper()}"
    preferred = prefs.get(direct) or prefs.get(reverse)
    if not preferred:
        return list(defaults)
    return list(dict.fromkeys([*preferred, *defaults]))


# ============================================================================
# Stable pairs
# ============================================================================


@dataclass(frozen=True)
class StableConfig:
    """Which pairs may be quoted against stable-curve pools."""

    stable_symbols: FrozenSet[str] = field(default_factory=frozenset)
    pair_overrides: FrozenSet[str] = field(default_factory=frozenset)

    def is_eligible(self, token_in: Token, token_out: Token) -> bool:
        """True when both sides are stables or the pair is explicitly listed."""
        if pair_key(token_in.symbol, token_out.symbol) in self.pair_overrides:
            return True
        return (
            token_in.symbol.upper() in self.stable_symbols
            and token_out.symbol.upper() in self.stable_symbols
        )


def parse_stable_pair_overrides(raw: Any, source: str = "<memory>") -> FrozenSet[str]:
    """Validate a list of "A/B" strings."""
    if not isinstance(raw, list):
        raise RegistryError(
            f'Stable pairs config at {source} must be a list of "TOKENA/TOKENB" strings',
            path=source,
        )
    out = set()
    for entry in raw:
        if not isinstance(entry, str) or "/" not in entry:
            raise RegistryError(f"Invalid stable pair entry: {entry!r}", path=source)
        a, _, b = entry.partition("/")
        a, b = a.strip(), b.strip()
        if not a or not b:
            raise RegistryError(f"Invalid stable pair entry: {entry}", path=source)
        out.add(pair_key(a, b))
    return frozenset(out)


def load_stable_pair_overrides(path: Optional[Union[str, Path]]) -> FrozenSet[str]:
    if not path:
        return frozenset()
    return parse_stable_pair_overrides(_read_json(path), source=str(path))


def build_stable_config(
    tokens: Iterable[Token], pair_overrides: FrozenSet[str] = frozenset()
) -> StableConfig:
    """Default stable symbols that appear in the registry, plus overrides."""
    known = {t.symbol.upper() for t in tokens}
    stable_symbols = frozenset(s for s in DEFAULT_STABLE_SYMBOLS if s in known)
    return StableConfig(stable_symbols=stable_symbols, pair_overrides=pair_overrides)
