"""Drive the orchestrator against the sandbox market from a YAML script."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .config import AppConfig
from .core import PositionOrchestrator, ProtocolGateway, RiskReader
from .errors import LendingError
from .interfaces.notifier import EventSink
from .models import CallerContext, LoanStatus
from .notifications import EventBus, LoggingEventSink, TelegramNotifier
from .registry import StaticMarketRegistry
from .sandbox import SandboxMarket

logger = logging.getLogger(__name__)

_AMOUNT_OPS = ("add_collateral", "remove_collateral", "add_debt", "remove_debt")


@dataclass(frozen=True)
class StepResult:
    index: int
    op: str
    wallet: str
    ok: bool
    detail: str = ""


def load_script(path: str | Path) -> list[dict[str, Any]]:
    """Read a YAML list of operations."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Script not found: {path}")
    with open(path) as f:
        steps = yaml.safe_load(f) or []
    if not isinstance(steps, list):
        raise ValueError(f"Script {path} must be a list of operations")
    return steps


class Simulation:
    """Wire a sandbox market, registry, orchestrator and notifiers from config."""

    def __init__(self, config: AppConfig) -> None:
        self._config = config
        self.market = SandboxMarket.from_config(config)
        self.registry = StaticMarketRegistry.from_config(config)

        sinks: list[EventSink] = [LoggingEventSink()]
        if config.notifications.telegram.enabled:
            sinks.append(TelegramNotifier(config.notifications.telegram))
        self.bus = EventBus(sinks)

        self.orchestrator = PositionOrchestrator.create(
            gate=self.market,
            invoker=self.market,
            market=self.market,
            registry=self.registry,
            comptroller=config.protocol.comptroller,
            host=self.market,
            bus=self.bus,
            native_market_symbol=config.protocol.native_market_symbol,
        )
        self.reader = RiskReader(ProtocolGateway(self.market, self.market), self.registry)

        self._owners = {w.address.lower(): w.owner for w in config.sandbox.wallets}
        self._symbols = {m.symbol: m.underlying for m in config.markets}

    def _asset(self, value: str) -> str:
        """Accept either a market symbol or an underlying address."""
        return self._symbols.get(value, value)

    def _context(self, step: dict[str, Any]) -> CallerContext:
        wallet = str(step["wallet"])
        caller = str(step.get("caller") or self._owners.get(wallet.lower(), ""))
        return CallerContext(wallet=wallet, caller=caller)

    async def run_step(self, step: dict[str, Any]) -> str:
        """Execute one operation and describe its outcome."""
        op = step["op"]
        ctx = self._context(step)
        o = self.orchestrator

        if op == "open_loan":
            loan_id = await o.open_loan(
                ctx,
                self._asset(step["collateral_asset"]),
                int(step["collateral_amount"]),
                self._asset(step["debt_asset"]),
                int(step["debt_amount"]),
            )
            return f"loan {loan_id} opened"
        if op == "close_loan":
            await o.close_loan(ctx)
            return "loan closed"
        if op in _AMOUNT_OPS:
            await getattr(o, op)(ctx, self._asset(step["asset"]), int(step["amount"]))
            return f"{op} {step['amount']}"
        if op == "add_investment":
            invested = await o.add_investment(
                ctx, self._asset(step["asset"]), int(step["amount"]), int(step.get("period", 0))
            )
            return f"invested {invested}"
        if op == "remove_investment":
            await o.remove_investment(ctx, self._asset(step["asset"]), int(step["fraction_bps"]))
            return f"withdrew {step['fraction_bps']} bps"
        if op == "loan_status":
            return self.format_status(await self.reader.get_loan_status(ctx.wallet))
        if op == "investment_value":
            value = await self.reader.get_investment_value(ctx.wallet, self._asset(step["asset"]))
            return f"investment value {value.token_value} (period end {value.period_end})"
        raise ValueError(f"Unknown operation '{op}'")

    async def run_script(self, steps: list[dict[str, Any]]) -> list[StepResult]:
        """Run every step; lending errors and missing fields are recorded and the script continues."""
        results: list[StepResult] = []
        for index, step in enumerate(steps, start=1):
            op = str(step.get("op", ""))
            wallet = str(step.get("wallet", ""))
            try:
                detail = await self.run_step(step)
                results.append(StepResult(index, op, wallet, True, detail))
            except LendingError as e:
                logger.info("Step %d (%s) failed: %s", index, op, e)
                results.append(StepResult(index, op, wallet, False, f"{type(e).__name__}: {e}"))
            except KeyError as e:
                logger.warning("Step %d (%s) is missing field %s", index, op, e)
                results.append(StepResult(index, op, wallet, False, f"missing field {e}"))
        return results

    async def final_statuses(self) -> dict[str, LoanStatus]:
        statuses: dict[str, LoanStatus] = {}
        for wallet in self._config.sandbox.wallets:
            statuses[wallet.address] = await self.reader.get_loan_status(wallet.address)
        return statuses

    @staticmethod
    def format_status(status: LoanStatus) -> str:
        return f"{status.status.name} ({status.magnitude})"
