"""
Deposit/withdraw check against a vault on a forked chain.

The run is a fixed list of steps. Each step takes the confirmed state left by
the previous one and returns a new state; nothing runs until the previous
step's transactions are mined.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable

from vaultcheck import log
from vaultcheck.accounting import quote_burn, quote_mint
from vaultcheck.apy import resolve_apy
from vaultcheck.asset import AssetToken, TokenAmount
from vaultcheck.chain import ChainClient
from vaultcheck.config import Config
from vaultcheck.errors import BalanceMismatch, ConfigInvalid, InsufficientFunds
from vaultcheck.formatting import fmt6, fmt_pct, fmt_tokens, format_units, parse_units
from vaultcheck.vault import Vault, VaultSnapshot


class Phase(Enum):
    IDLE = "idle"
    REPORTING = "reporting"
    FUNDING = "funding"
    DEPOSITING = "depositing"
    WITHDRAWING = "withdrawing"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class ShareQuote:
    kind: str
    amount_in: int
    amount_out: int
    total_share_supply: int
    total_vault_assets: int
    block_number: int


@dataclass(frozen=True)
class RunState:
    phase: Phase = Phase.IDLE
    snapshot: VaultSnapshot | None = None
    tvl: TokenAmount | None = None
    asset_symbol: str = ""
    apy: float | None = None
    shares_before: TokenAmount | None = None
    shares_after_deposit: TokenAmount | None = None
    shares_final: TokenAmount | None = None
    mint_quote: ShareQuote | None = None
    burn_quote: ShareQuote | None = None
    receipts: dict[str, Any] = field(default_factory=dict)
    failure: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.phase is Phase.DONE


Step = Callable[[RunState], RunState]


class Scenario:
    def __init__(self, config: Config, chain: ChainClient, asset: AssetToken | None = None,
                 vault: Vault | None = None, apy: float | None = None) -> None:
        self.config = config
        self.chain = chain
        self.asset = asset or AssetToken(chain, config.asset_address)
        self.vault = vault or Vault(chain, config.vault_address, config.vault_abi)
        self.apy = apy
        self.wallet = chain.wallet
        self.min_funding = parse_units(config.min_funding, config.asset_decimals)
        self.funding_amount = parse_units(config.funding_amount, config.asset_decimals)
        self.deposit_amount = parse_units(config.deposit_amount, config.asset_decimals)
        self.state = RunState()

    @property
    def steps(self) -> list[tuple[Phase, Step]]:
        return [
            (Phase.REPORTING, self.report_vault),
            (Phase.FUNDING, self.check_funding),
            (Phase.FUNDING, self.fund_wallet),
            (Phase.DEPOSITING, self.record_before),
            (Phase.DEPOSITING, self.quote_deposit),
            (Phase.DEPOSITING, self.approve_vault),
            (Phase.DEPOSITING, self.deposit),
            (Phase.DEPOSITING, self.record_after_deposit),
            (Phase.WITHDRAWING, self.quote_withdraw),
            (Phase.WITHDRAWING, self.withdraw),
            (Phase.REPORTING, self.record_final),
        ]

    def run(self) -> RunState:
        state = self.state
        for phase, step in self.steps:
            state = replace(state, phase=phase)
            try:
                state = step(state)
            except Exception as e:
                self.state = replace(state, phase=Phase.FAILED, failure=e)
                raise
            self.state = state
            if state.phase is Phase.FAILED:
                return state
        self.state = replace(state, phase=Phase.DONE)
        log.success("Complete!")
        return self.state

    def _read_ratio(self) -> tuple[int, int, int]:
        # supply and assets from the same block
        block = self.chain.block_number()
        supply = self.vault.total_supply(block_identifier=block)
        assets = self.asset.balance_of(self.vault.address, block_identifier=block).amount
        return supply, assets, block

    def report_vault(self, state: RunState) -> RunState:
        snapshot = self.vault.metadata()
        tvl = self.asset.balance_of(self.vault.address)
        symbol = self.asset.symbol()
        apy = self.apy
        if apy is None:
            apy = resolve_apy(self.config.apy, self.config.defillama_pool, self.config.defillama_field)

        log.section(f"Vault: {snapshot.name} ({snapshot.symbol})")
        log.field("APY", fmt_pct(apy, 1))
        log.field("TVL", fmt_tokens(tvl.amount, tvl.decimals, symbol))
        log.field("Token", f"{symbol} ({tvl.decimals} decimals)")
        # fixed amounts were parsed with ASSET_DECIMALS
        if tvl.decimals != self.config.asset_decimals:
            raise ConfigInvalid(
                f"ASSET_DECIMALS={self.config.asset_decimals} but {symbol} has {tvl.decimals} decimals"
            )
        return replace(state, snapshot=snapshot, tvl=tvl, asset_symbol=symbol, apy=apy)

    def check_funding(self, state: RunState) -> RunState:
        balance = self.asset.balance_of(self.config.funding_address)
        if balance.amount < self.min_funding:
            failure = InsufficientFunds(self.config.funding_address, balance.amount, self.min_funding)
            log.error(
                f"{self.config.funding_address} has insufficient {state.asset_symbol} funds: "
                f"{balance} < {format_units(self.min_funding, balance.decimals)}"
            )
            return replace(state, phase=Phase.FAILED, failure=failure)
        return state

    def fund_wallet(self, state: RunState) -> RunState:
        with self.chain.impersonating(self.config.funding_address) as funder:
            receipt = self.asset.transfer(self.wallet.address, self.funding_amount, funder)
        return replace(state, receipts={**state.receipts, "fund": receipt})

    def record_before(self, state: RunState) -> RunState:
        before = self.vault.share_balance_of(self.wallet.address)
        log.step(f"Wallet: {self.wallet.address}")
        log.field("Balance before", fmt6(before.amount, before.decimals))
        return replace(state, shares_before=before)

    def quote_deposit(self, state: RunState) -> RunState:
        log.step("Depositing...")
        supply, assets, block = self._read_ratio()
        shares = quote_mint(self.deposit_amount, supply, assets)
        quote = ShareQuote("mint", self.deposit_amount, shares, supply, assets, block)
        log.detail(f"Shares to mint: {shares} (supply {supply}, assets {assets} @ block {block})")
        return replace(state, mint_quote=quote)

    def approve_vault(self, state: RunState) -> RunState:
        receipt = self.asset.approve(self.vault.address, self.deposit_amount, self.wallet)
        return replace(state, receipts={**state.receipts, "approve": receipt})

    def deposit(self, state: RunState) -> RunState:
        quote = state.mint_quote
        with self.chain.impersonating(state.snapshot.owner) as owner:
            receipt = self.vault.enter(
                self.wallet.address, self.asset.address, quote.amount_in,
                self.wallet.address, quote.amount_out, owner,
            )
        return replace(state, receipts={**state.receipts, "enter": receipt})

    def record_after_deposit(self, state: RunState) -> RunState:
        after = self.vault.share_balance_of(self.wallet.address)
        log.field("Balance after", fmt6(after.amount, after.decimals))
        expected = state.shares_before.amount + state.mint_quote.amount_out
        if after.amount != expected:
            raise BalanceMismatch("after deposit", expected, after.amount)
        return replace(state, shares_after_deposit=after)

    def quote_withdraw(self, state: RunState) -> RunState:
        log.step("Withdrawing...")
        shares = state.shares_after_deposit.amount - state.shares_before.amount
        supply, assets, block = self._read_ratio()
        released = quote_burn(shares, assets, supply)
        quote = ShareQuote("burn", shares, released, supply, assets, block)
        log.detail(f"Assets to release: {released} for {shares} shares (supply {supply}, assets {assets} @ block {block})")
        return replace(state, burn_quote=quote)

    def withdraw(self, state: RunState) -> RunState:
        quote = state.burn_quote
        with self.chain.impersonating(state.snapshot.owner) as owner:
            receipt = self.vault.exit(
                self.wallet.address, self.asset.address, quote.amount_out,
                self.wallet.address, quote.amount_in, owner,
            )
        return replace(state, receipts={**state.receipts, "exit": receipt})

    def record_final(self, state: RunState) -> RunState:
        final = self.vault.share_balance_of(self.wallet.address)
        log.field("Balance final", fmt6(final.amount, final.decimals))
        expected = state.shares_after_deposit.amount - state.burn_quote.amount_in
        if final.amount != expected:
            raise BalanceMismatch("after withdrawal", expected, final.amount)
        return replace(state, shares_final=final)
