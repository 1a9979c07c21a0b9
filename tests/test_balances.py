import pytest

from walletwatch.balances import BalanceService
from walletwatch.explorer import ExplorerError
from walletwatch.models import Asset, TrackedToken

ADDRESS = "0x" + "a" * 40
USDC = TrackedToken(symbol="USDC", contract_address="0x" + "1" * 40, decimals=6)
DAI = TrackedToken(symbol="DAI", contract_address="0x" + "2" * 40, decimals=18)


class DummySource:
    def __init__(self, native=10**18, tokens=None, failing=()) -> None:
        self.native = native
        self.tokens = tokens or {}
        self.failing = set(failing)
        self.calls = []

    async def native_balance(self, address):
        self.calls.append(("native", address))
        if "native" in self.failing:
            raise ExplorerError("down")
        return self.native

    async def token_balance(self, address, contract_address):
        self.calls.append(("token", contract_address))
        if contract_address in self.failing:
            raise ExplorerError("down")
        return self.tokens.get(contract_address, 0)


@pytest.mark.asyncio
async def test_summary_lists_native_and_tokens() -> None:
    source = DummySource(
        native=2 * 10**18,
        tokens={USDC.contract_address: 1_250_000, DAI.contract_address: 5 * 10**17},
    )
    service = BalanceService(source, Asset("ETH", 18), tokens=[USDC, DAI])

    summary = await service.get_summary(ADDRESS)

    lines = summary.split("\n")
    assert lines[0] == "💼 Balances:"
    assert lines[1] == "• 2\\.000000 ETH"
    assert lines[2] == "• 1\\.250000 USDC"
    assert lines[3] == "• 0\\.500000 DAI"


@pytest.mark.asyncio
async def test_failed_token_lookup_is_dropped() -> None:
    source = DummySource(failing={USDC.contract_address})
    service = BalanceService(source, Asset("ETH", 18), tokens=[USDC, DAI])

    summary = await service.get_summary(ADDRESS)

    assert "USDC" not in summary
    assert "DAI" in summary
    assert ("token", DAI.contract_address) in source.calls


@pytest.mark.asyncio
async def test_all_lookups_failing_returns_none() -> None:
    source = DummySource(failing={"native", USDC.contract_address})
    service = BalanceService(source, Asset("ETH", 18), tokens=[USDC])

    assert await service.get_summary(ADDRESS) is None
