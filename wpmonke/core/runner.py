"""Core runner that executes suite cases inside fixture sessions."""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Type

from wpmonke.client.wordpress import WordPressClient
from wpmonke.core import events
from wpmonke.core.config import HarnessConfig
from wpmonke.core.lifecycle import FixtureLifecycle, SkipTest
from wpmonke.suites.base import BaseSuite
from wpmonke.suites.registry import SuiteRegistry
from wpmonke.utils.logging import get_logger


class CaseOutcome(str, Enum):
    PASSED = "passed"
    FAILED = "failed"
    ERRORED = "errored"
    SKIPPED = "skipped"


@dataclass
class CaseResult:
    """Result of one case."""

    suite: str
    case: str
    outcome: CaseOutcome
    duration: float
    message: str = ""
    cleanup_errors: List[str] = field(default_factory=list)

    @property
    def name(self) -> str:
        return f"{self.suite}.{self.case}"


@dataclass
class SuiteReport:
    """Aggregated results of a run."""

    run_id: str
    results: List[CaseResult] = field(default_factory=list)
    duration: float = 0.0

    def count(self, outcome: CaseOutcome) -> int:
        return sum(1 for r in self.results if r.outcome == outcome)

    @property
    def passed(self) -> int:
        return self.count(CaseOutcome.PASSED)

    @property
    def failed(self) -> int:
        return self.count(CaseOutcome.FAILED)

    @property
    def errored(self) -> int:
        return self.count(CaseOutcome.ERRORED)

    @property
    def skipped(self) -> int:
        return self.count(CaseOutcome.SKIPPED)

    @property
    def success(self) -> bool:
        return self.failed == 0 and self.errored == 0

    def summary(self) -> Dict[str, Any]:
        return {
            "run_id": self.run_id,
            "passed": self.passed,
            "failed": self.failed,
            "errored": self.errored,
            "skipped": self.skipped,
            "duration": self.duration,
        }


class SuiteRunner:
    """Runs suites case by case, one fixture session per case."""

    def __init__(
        self, config: HarnessConfig, client: WordPressClient, run_id: Optional[str] = None
    ):
        self.config = config
        self.client = client
        self.run_id = run_id or f"run-{int(time.time() * 1000)}"
        self.logger = get_logger("suite_runner")

    def resolve_suites(self, names: Optional[Iterable[str]] = None) -> List[Type[BaseSuite]]:
        selected = list(names or self.config.suites or SuiteRegistry.list_available())
        return [SuiteRegistry.get(name) for name in selected]

    async def run(self, suite_names: Optional[Iterable[str]] = None) -> SuiteReport:
        """Run the selected suites (default: configured, else all registered)."""
        suites = self.resolve_suites(suite_names)
        report = SuiteReport(run_id=self.run_id)
        self.logger.info(f"🚀 Starting run {self.run_id}: {self.config.name}")
        await self._emit("run_started", {"suites": [s.suite_name for s in suites]})

        started = time.time()
        for suite_cls in suites:
            report.results.extend(await self.run_suite(suite_cls))
        report.duration = time.time() - started

        self.logger.info(
            f"🏁 {report.passed} passed, {report.failed} failed, "
            f"{report.errored} errored, {report.skipped} skipped in {report.duration:.2f}s"
        )
        await self._emit("run_completed", report.summary())
        return report

    async def run_suite(self, suite_cls: Type[BaseSuite]) -> List[CaseResult]:
        suite = suite_cls(self.client, self.config)
        self.logger.info(f"📋 Suite {suite_cls.suite_name}: {suite_cls.description}")
        results = []
        for case_name in suite_cls.list_cases():
            results.append(await self.run_case(suite, case_name))
        return results

    async def run_case(self, suite: BaseSuite, case_name: str) -> CaseResult:
        """Run one case inside its own fixture session and classify the outcome."""
        full_name = f"{suite.suite_name}.{case_name}"
        lifecycle = FixtureLifecycle(
            self.client,
            self.config.capabilities,
            self.config.fixtures,
            baseline=suite.baseline,
            run_id=self.run_id,
            case_name=full_name,
        )
        suite.lifecycle = lifecycle
        await self._emit("case_started", {"case": full_name})

        start_time = time.time()
        message = ""
        try:
            async with lifecycle.session() as ctx:
                await getattr(suite, case_name)(ctx)
            outcome = CaseOutcome.PASSED
        except SkipTest as e:
            outcome = CaseOutcome.SKIPPED
            message = e.reason
        except AssertionError as e:
            outcome = CaseOutcome.FAILED
            message = str(e) or "assertion failed"
        except Exception as e:
            outcome = CaseOutcome.ERRORED
            message = f"{type(e).__name__}: {e}"
        finally:
            suite.lifecycle = None
        duration = time.time() - start_time

        cleanup_errors = []
        if lifecycle.context is not None:
            cleanup_errors = [str(err) for err in lifecycle.context.cleanup_errors]

        result = CaseResult(
            suite=suite.suite_name,
            case=case_name,
            outcome=outcome,
            duration=duration,
            message=message,
            cleanup_errors=cleanup_errors,
        )
        self._log_result(result)
        await self._emit(
            "case_finished",
            {
                "case": full_name,
                "outcome": outcome.value,
                "duration": duration,
                "message": message,
            },
        )
        return result

    def _log_result(self, result: CaseResult) -> None:
        if result.outcome == CaseOutcome.PASSED:
            self.logger.info(f"✅ {result.name} ({result.duration:.2f}s)")
        elif result.outcome == CaseOutcome.SKIPPED:
            self.logger.warning(f"⏭️ {result.name} skipped: {result.message}")
        else:
            self.logger.error(f"❌ {result.name} {result.outcome.value}: {result.message}")

    async def _emit(self, event_type: str, extra: Optional[Dict[str, Any]] = None) -> None:
        payload: Dict[str, Any] = {"type": event_type, "run_id": self.run_id, "ts": time.time()}
        if extra:
            payload.update(extra)
        await events.publish(payload)
