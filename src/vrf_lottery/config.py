from __future__ import annotations

import os
from dataclasses import dataclass
from dotenv import load_dotenv

from .accounts import derive_address, require_address
from .errors import ConfigError, InvalidAddress
from .project_constants import (
    CALLBACK_GAS_LIMIT,
    ENTRANCE_FEE_WEI,
    INTERVAL_S,
    KEY_HASH,
    LOCAL_COORDINATOR_LABEL,
    NATIVE_PAYMENT,
    NUM_WORDS,
    REQUEST_CONFIRMATIONS,
    SUBSCRIPTION_ID,
)


@dataclass(frozen=True)
class DrawConfig:
    entrance_fee: int = ENTRANCE_FEE_WEI
    interval_s: float = INTERVAL_S
    key_hash: str = KEY_HASH
    subscription_id: int = SUBSCRIPTION_ID
    callback_gas_limit: int = CALLBACK_GAS_LIMIT
    request_confirmations: int = REQUEST_CONFIRMATIONS
    num_words: int = NUM_WORDS
    native_payment: bool = NATIVE_PAYMENT

    def __post_init__(self) -> None:
        if self.entrance_fee < 0:
            raise ConfigError(f"entrance_fee must be >= 0, got {self.entrance_fee}")
        if self.interval_s < 0:
            raise ConfigError(f"interval_s must be >= 0, got {self.interval_s}")
        if self.request_confirmations < 1:
            raise ConfigError(
                f"request_confirmations must be >= 1, got {self.request_confirmations}"
            )
        if self.num_words < 1:
            raise ConfigError(f"num_words must be >= 1, got {self.num_words}")
        if self.callback_gas_limit <= 0:
            raise ConfigError(
                f"callback_gas_limit must be > 0, got {self.callback_gas_limit}"
            )


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from e


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from e


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return default
    if raw in ("1", "true", "yes", "on"):
        return True
    if raw in ("0", "false", "no", "off"):
        return False
    raise ConfigError(f"{name} must be a boolean, got {raw!r}")


@dataclass(frozen=True)
class Settings:
    entrance_fee: int
    interval_s: float
    key_hash: str
    subscription_id: int
    callback_gas_limit: int
    request_confirmations: int
    native_payment: bool
    coordinator_address: str
    rpc_url: str | None = None

    @staticmethod
    def from_env(
        rpc_url_override: str | None = None, dotenv_path: str | None = None
    ) -> "Settings":
        load_dotenv(dotenv_path)

        coordinator = os.getenv("VRF_COORDINATOR_ADDRESS", "").strip()
        if coordinator:
            try:
                require_address(coordinator)
            except InvalidAddress as e:
                raise ConfigError(f"VRF_COORDINATOR_ADDRESS: {e}") from e
        else:
            coordinator = derive_address(LOCAL_COORDINATOR_LABEL)

        # --rpc-url wins over the environment; no URL means a local oracle.
        rpc_url = rpc_url_override or os.getenv("VRF_RPC_URL", "").strip() or None

        return Settings(
            entrance_fee=_env_int("LOTTERY_ENTRANCE_FEE_WEI", ENTRANCE_FEE_WEI),
            interval_s=_env_float("LOTTERY_INTERVAL_S", INTERVAL_S),
            key_hash=os.getenv("VRF_KEY_HASH", "").strip() or KEY_HASH,
            subscription_id=_env_int("VRF_SUBSCRIPTION_ID", SUBSCRIPTION_ID),
            callback_gas_limit=_env_int("VRF_CALLBACK_GAS_LIMIT", CALLBACK_GAS_LIMIT),
            request_confirmations=_env_int(
                "VRF_REQUEST_CONFIRMATIONS", REQUEST_CONFIRMATIONS
            ),
            native_payment=_env_bool("VRF_NATIVE_PAYMENT", NATIVE_PAYMENT),
            coordinator_address=coordinator,
            rpc_url=rpc_url,
        )

    def draw_config(self) -> DrawConfig:
        return DrawConfig(
            entrance_fee=self.entrance_fee,
            interval_s=self.interval_s,
            key_hash=self.key_hash,
            subscription_id=self.subscription_id,
            callback_gas_limit=self.callback_gas_limit,
            request_confirmations=self.request_confirmations,
            num_words=NUM_WORDS,
            native_payment=self.native_payment,
        )
