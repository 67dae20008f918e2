"""
Scan settings: schema, YAML loading and source precedence.

Precedence (lowest to highest): field defaults, YAML file, environment
(BASE_RPC_URL, also read from a .env file), explicit overrides (CLI flags).
"""

import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator
from web3 import Web3

from .exceptions import ConfigError, InvalidDecimal
from .fixed_point import MAX_DECIMALS, to_units
from .ranking import UnknownGasPolicy
from .types import ScanBudgets
from .venues import VENUE_FACTORIES

RPC_URL_ENV = "BASE_RPC_URL"


class ScanSettings(BaseModel):
    """Validated settings for one scan run."""

    rpc_url: str = Field(description="HTTP(S) RPC endpoint")
    tokens_path: str = Field(default="tokens.json", description="Token registry JSON")
    fee_prefs_path: Optional[str] = None
    stable_pairs_path: Optional[str] = None

    start_symbol: str = "USDC"
    native_symbol: str = "WETH"
    connector_symbol: Optional[str] = Field(
        default=None, description="Connector for two-pool Aerodrome routes (default: native)"
    )
    amount: str = "100"
    min_profit: Optional[str] = None
    top_n: int = Field(default=20, ge=0)
    max_triangles: int = Field(default=200, ge=0)
    token_subset: Optional[List[str]] = None

    dexes: List[str] = Field(default_factory=lambda: ["uniswapv3", "aerodrome"])
    fee_tiers: List[int] = Field(default_factory=lambda: [500, 3000, 10000])

    max_combos_per_triangle: int = Field(default=24, ge=0)
    max_total_quotes: int = Field(default=2000, ge=0)
    time_budget_ms: int = Field(default=60000, ge=0)
    quote_concurrency: int = Field(default=6, ge=1, le=64)
    option_concurrency: int = Field(default=4, ge=1, le=64)

    cache_ttl_sec: float = Field(default=8.0, ge=0)
    call_timeout_sec: float = Field(default=10.0, gt=0)
    gas_price_wei: Optional[int] = Field(default=None, ge=0)
    unknown_gas_policy: str = UnknownGasPolicy.INCLUDE.value

    uniswap_v3_factory: Optional[str] = None
    uniswap_v3_quoter: Optional[str] = None
    aerodrome_router: Optional[str] = None
    aerodrome_factory: Optional[str] = None

    verbose: bool = False
    trace_amounts: bool = False
    self_test: bool = False

    @field_validator("rpc_url")
    @classmethod
    def validate_rpc_url(cls, v):
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"rpc_url must be an http(s) URL: {v}")
        return v

    @field_validator("start_symbol", "native_symbol", "connector_symbol")
    @classmethod
    def normalize_symbol(cls, v):
        if v is None:
            return v
        if not v.strip():
            raise ValueError("Token symbol cannot be empty")
        return v.strip().upper()

    @field_validator("token_subset")
    @classmethod
    def normalize_subset(cls, v):
        if v is None:
            return v
        return [s.strip().upper() for s in v if s.strip()]

    @field_validator("amount", "min_profit", mode="before")
    @classmethod
    def validate_decimal_string(cls, v):
        if v is None:
            return v
        # YAML hands back numbers for unquoted amounts
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            v = str(v)
        if not isinstance(v, str):
            raise ValueError(f"Amount must be a decimal string, got {type(v).__name__}")
        try:
            to_units(v, MAX_DECIMALS)
        except InvalidDecimal as e:
            raise ValueError(str(e))
        return v.strip()

    @field_validator("dexes")
    @classmethod
    def validate_dexes(cls, v):
        if not v:
            raise ValueError("dexes cannot be empty")
        for venue_id in v:
            if venue_id not in VENUE_FACTORIES:
                raise ValueError(
                    f"Unsupported dex '{venue_id}' (supported: {', '.join(sorted(VENUE_FACTORIES))})"
                )
        return list(dict.fromkeys(v))

    @field_validator("fee_tiers")
    @classmethod
    def validate_fee_tiers(cls, v):
        if not v:
            raise ValueError("fee_tiers cannot be empty")
        for fee in v:
            if fee <= 0 or fee >= 1_000_000:
                raise ValueError(f"Invalid fee tier: {fee}")
        return list(dict.fromkeys(v))

    @field_validator("unknown_gas_policy")
    @classmethod
    def validate_gas_policy(cls, v):
        try:
            return UnknownGasPolicy.parse(v).value
        except ConfigError as e:
            raise ValueError(str(e))

    @field_validator(
        "uniswap_v3_factory", "uniswap_v3_quoter", "aerodrome_router", "aerodrome_factory"
    )
    @classmethod
    def validate_address(cls, v):
        if v is None:
            return v
        if not Web3.is_address(v):
            raise ValueError(f"Invalid contract address: {v}")
        return Web3.to_checksum_address(v)

    @model_validator(mode="after")
    def validate_symbols(self):
        if self.start_symbol == self.native_symbol:
            raise ValueError("start_symbol and native_symbol must differ")
        return self

    model_config = {"extra": "forbid"}

    @property
    def budgets(self) -> ScanBudgets:
        return ScanBudgets(
            max_combos_per_triangle=self.max_combos_per_triangle,
            max_total_quotes=self.max_total_quotes,
            time_budget_ms=self.time_budget_ms,
            quote_concurrency=self.quote_concurrency,
        )

    @property
    def gas_policy(self) -> UnknownGasPolicy:
        return UnknownGasPolicy.parse(self.unknown_gas_policy)

    def address_overrides(self) -> Dict[str, str]:
        """Venue contract overrides that were actually set."""
        names = ("uniswap_v3_factory", "uniswap_v3_quoter", "aerodrome_router", "aerodrome_factory")
        return {n: getattr(self, n) for n in names if getattr(self, n) is not None}


def read_config_file(config_path: Union[str, Path]) -> Dict[str, Any]:
    """
    Read a YAML settings file.

    Raises:
        ConfigError: If the file is missing, unparsable or not a mapping
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        with open(config_path, "r") as f:
            config_dict = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse YAML: {e}") from e

    if config_dict is None:
        return {}
    if not isinstance(config_dict, dict):
        raise ConfigError("Config file must contain a YAML dictionary")
    return config_dict


def load_settings(
    config_path: Optional[Union[str, Path]] = None,
    overrides: Optional[Mapping[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
    dotenv: bool = True,
) -> ScanSettings:
    """
    Merge all settings sources and validate.

    Args:
        config_path: Optional YAML file
        overrides: Highest-precedence values (None entries are ignored)
        environ: Environment mapping (default: os.environ)
        dotenv: Load a .env file into the process environment first

    Returns:
        Validated ScanSettings

    Raises:
        ConfigError: If any source is unreadable or the merged values fail validation
    """
    if dotenv and environ is None:
        load_dotenv()
    env = os.environ if environ is None else environ

    merged: Dict[str, Any] = {}
    if config_path:
        merged.update(read_config_file(config_path))

    rpc_url = env.get(RPC_URL_ENV)
    if rpc_url:
        merged["rpc_url"] = rpc_url

    for key, value in (overrides or {}).items():
        if value is not None:
            merged[key] = value

    if "rpc_url" not in merged:
        raise ConfigError(f"Missing RPC URL: set {RPC_URL_ENV} or pass --rpc")

    try:
        return ScanSettings(**merged)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'settings'}: {err['msg']}"
            for err in e.errors()
        )
        raise ConfigError(f"Invalid settings: {problems}", details={"errors": e.errors()}) from e
