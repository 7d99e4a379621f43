import pytest

from vrf_lottery.accounts import derive_address
from vrf_lottery.clock import ManualClock
from vrf_lottery.config import DrawConfig
from vrf_lottery.engine import LotteryEngine
from vrf_lottery.ledger import Ledger
from vrf_lottery.oracle import LocalCoordinator

ENTRANCE_FEE = 10**16  # 0.01
INTERVAL = 30
STARTING_BALANCE = 10**18


@pytest.fixture
def clock():
    return ManualClock(start=1_700_000_000)


@pytest.fixture
def ledger():
    return Ledger()


@pytest.fixture
def coordinator():
    return LocalCoordinator()


@pytest.fixture
def config():
    return DrawConfig(entrance_fee=ENTRANCE_FEE, interval_s=INTERVAL)


@pytest.fixture
def engine(config, coordinator, ledger, clock):
    return LotteryEngine(config, coordinator, ledger, clock=clock)


@pytest.fixture
def player(ledger):
    addr = derive_address("player")
    ledger.fund(addr, STARTING_BALANCE)
    return addr


@pytest.fixture
def players(ledger):
    addrs = [derive_address(f"player-{i}") for i in range(4)]
    for a in addrs:
        ledger.fund(a, STARTING_BALANCE)
    return addrs


@pytest.fixture
def entered(engine, player, clock):
    """An engine with one entrant whose interval has elapsed."""
    engine.enter(player, ENTRANCE_FEE)
    clock.advance(INTERVAL + 1)
    return engine


ENV_VARS = [
    "LOTTERY_ENTRANCE_FEE_WEI",
    "LOTTERY_INTERVAL_S",
    "VRF_KEY_HASH",
    "VRF_SUBSCRIPTION_ID",
    "VRF_CALLBACK_GAS_LIMIT",
    "VRF_REQUEST_CONFIRMATIONS",
    "VRF_NATIVE_PAYMENT",
    "VRF_COORDINATOR_ADDRESS",
    "VRF_RPC_URL",
]


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Unset lottery variables; anything load_dotenv sets is removed afterwards."""
    monkeypatch.chdir(tmp_path)
    for name in ENV_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
