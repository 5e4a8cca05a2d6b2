"""
Error Recovery Manager

Runs recovery actions for errors that escape normal handling.

MECHANISM OF ACTION:
-------------------
1.  **Actions**: each RecoveryAction names the ErrorKinds it handles (and an
    optional extra predicate). Actions are kept sorted by ascending priority.
2.  **handle_error(error, context)**: classify the error, run every
    applicable action in priority order, record each outcome. A failing
    action is logged and recorded; the remaining actions still run.
3.  **Single pass**: only one recovery pass runs at a time. An error arriving
    while a pass is in progress is logged and dropped, not queued.
4.  **Global hooks**: install_global_handlers() routes threading.excepthook and
    the event loop's exception handler into handle_error(). sys.excepthook only
    logs, since it fires after the loop has stopped.

Routing is by ErrorKind tag (see statusbot.core.exceptions.classify_error),
never by message text.
"""

import asyncio
import gc
import sys
import threading
import time
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, TypeVar

import aiofiles.os
import psutil
from tenacity import retry_if_exception

from statusbot.core.config.constants import (
    RECOVERY_DIRECTORIES,
    RECOVERY_HISTORY_LIMIT,
    RECOVERY_RECENT_ATTEMPTS,
    RECOVERY_RETRY_MAX_DELAY_MS,
    RETRY_BASE_DELAY_MS,
)
from statusbot.core.exceptions import ErrorKind, classify_error
from statusbot.core.interfaces import ConnectivityProbe
from statusbot.core.logging.logger import get_logger
from statusbot.core.resilience.retry import SleepFunc, create_async_retrying
from statusbot.monitoring import metrics

logger = get_logger(__name__)

T = TypeVar("T")

MEMORY_PRESSURE_RATIO = 0.9


def process_memory_ratio() -> float:
    """Resident memory of this process as a fraction of system memory."""
    return psutil.Process().memory_percent() / 100


@dataclass
class RecoveryAction:
    name: str
    action: Callable[[], Awaitable[None]]
    kinds: frozenset[ErrorKind] = frozenset()
    priority: int = 100
    condition: Callable[[BaseException], bool] | None = None

    def applies_to(self, error: BaseException, kind: ErrorKind) -> bool:
        if kind in self.kinds:
            return True
        return self.condition is not None and self.condition(error)


@dataclass
class RetryConfig:
    """Settings for ErrorRecoveryManager.retry_with_backoff()."""

    max_retries: int = 3
    base_delay_ms: float = RETRY_BASE_DELAY_MS
    max_delay_ms: float = RECOVERY_RETRY_MAX_DELAY_MS
    backoff_multiplier: float = 2
    retry_condition: Callable[[BaseException], bool] | None = None


@dataclass
class RecoveryRecord:
    timestamp_ms: float
    error: str
    action: str
    success: bool


@dataclass
class _InstalledHooks:
    loop: asyncio.AbstractEventLoop
    previous_excepthook: Callable[..., Any]
    previous_thread_excepthook: Callable[..., Any]
    previous_loop_handler: Callable[..., Any] | None
    pending: set[asyncio.Task] = field(default_factory=set)


class ErrorRecoveryManager:
    """
    Ordered recovery actions plus a bounded-retry helper.

    Usage:
        recovery = ErrorRecoveryManager()
        recovery.setup_default_recovery_actions(reconnect=client.reconnect, connectivity_probe=probe)
        recovery.install_global_handlers(asyncio.get_running_loop())

        data = await recovery.retry_with_backoff(load_data, RetryConfig(max_retries=2))
    """

    def __init__(self, sleep: SleepFunc | None = None):
        self._actions: list[RecoveryAction] = []
        self._history: list[RecoveryRecord] = []
        self._recovering = False
        self._sleep = sleep
        self._hooks: _InstalledHooks | None = None

    @property
    def actions(self) -> list[RecoveryAction]:
        return list(self._actions)

    @property
    def is_recovering(self) -> bool:
        return self._recovering

    def add_recovery_action(self, action: RecoveryAction) -> None:
        self._actions.append(action)
        self._actions.sort(key=lambda a: a.priority)

    def setup_default_recovery_actions(
        self,
        reconnect: Callable[[], Awaitable[None]] | None = None,
        connectivity_probe: ConnectivityProbe | None = None,
        cache_clearers: Iterable[Callable[[], Any]] = (),
        base_dir: Path | None = None,
        memory_sampler: Callable[[], float] = process_memory_ratio,
    ) -> None:
        """
        Register connection_reconnect, memory_cleanup and file_system_recovery.

        Args:
            reconnect: Coroutine function that re-establishes the gateway session.
                connection_reconnect is only registered when given.
            connectivity_probe: Skips reconnecting while the gateway reports ready
            cache_clearers: Callables run by memory_cleanup (e.g. ApiManager.clear_cache)
            base_dir: Parent of the recreated working directories (default: cwd)
            memory_sampler: Returns process memory usage as a 0..1 ratio
        """
        clearers = list(cache_clearers)
        root = base_dir or Path.cwd()

        if reconnect is not None:
            async def reconnect_gateway() -> None:
                if connectivity_probe is not None and connectivity_probe.is_ready():
                    logger.info("Gateway reports ready, skipping reconnect", stage="ER.3")
                    return
                logger.info("Attempting gateway reconnection...", stage="ER.3")
                await reconnect()

            self.add_recovery_action(RecoveryAction(
                name="connection_reconnect",
                action=reconnect_gateway,
                kinds=frozenset({ErrorKind.CONNECTION}),
                priority=1,
            ))

        async def cleanup_memory() -> None:
            logger.info("Performing memory cleanup...", stage="ER.3")
            for clear in clearers:
                clear()
            collected = gc.collect()
            logger.info("Memory cleanup finished", stage="ER.3", collected_objects=collected)

        def under_memory_pressure(error: BaseException) -> bool:
            return memory_sampler() > MEMORY_PRESSURE_RATIO

        self.add_recovery_action(RecoveryAction(
            name="memory_cleanup",
            action=cleanup_memory,
            kinds=frozenset({ErrorKind.MEMORY}),
            priority=2,
            condition=under_memory_pressure,
        ))

        async def recreate_directories() -> None:
            logger.info("Attempting file system recovery...", stage="ER.3", base_dir=str(root))
            for name in RECOVERY_DIRECTORIES:
                await aiofiles.os.makedirs(root / name, exist_ok=True)

        self.add_recovery_action(RecoveryAction(
            name="file_system_recovery",
            action=recreate_directories,
            kinds=frozenset({ErrorKind.FILESYSTEM}),
            priority=3,
        ))

    async def handle_error(self, error: BaseException, context: str = "unknown") -> None:
        """Run every applicable recovery action for error, in priority order."""
        if self._recovering:
            logger.warning(
                "Recovery already in progress, dropping error",
                stage="ER.1",
                context=context,
                error=str(error),
            )
            return

        self._recovering = True
        kind = classify_error(error)
        logger.error(
            f"Error in context '{context}': {error}",
            stage="ER.1",
            kind=kind.value,
            error_type=type(error).__name__,
        )

        try:
            applicable = [action for action in self._actions if action.applies_to(error, kind)]
            if not applicable:
                logger.warning("No recovery actions found for error", stage="ER.2", kind=kind.value)
                return

            for action in applicable:
                logger.info(f"Executing recovery action: {action.name}", stage="ER.2")
                try:
                    await action.action()
                except Exception as recovery_error:
                    self._record(error, action.name, False)
                    logger.error(
                        f"Recovery action '{action.name}' failed: {recovery_error}",
                        stage="ER.2",
                        exc_info=True,
                    )
                else:
                    self._record(error, action.name, True)
                    logger.info(f"Recovery action '{action.name}' completed successfully", stage="ER.2")
        finally:
            self._recovering = False

    async def retry_with_backoff(
        self,
        fn: Callable[[], Awaitable[T]],
        config: RetryConfig | None = None,
    ) -> T:
        """
        Call fn until it succeeds, up to config.max_retries extra attempts.

        Waits min(base_delay_ms * multiplier ** attempt, max_delay_ms) between
        attempts. An error rejected by retry_condition is raised immediately;
        otherwise the last error is raised once attempts are exhausted.
        """
        config = config or RetryConfig()
        condition = config.retry_condition or (lambda e: True)

        retrying = create_async_retrying(
            config.max_retries,
            operation=getattr(fn, "__name__", "operation"),
            base_delay_ms=config.base_delay_ms,
            max_delay_ms=config.max_delay_ms,
            multiplier=config.backoff_multiplier,
            retry=retry_if_exception(condition),
            sleep=self._sleep,
        )
        return await retrying(fn)

    def _record(self, error: BaseException, action: str, success: bool) -> None:
        self._history.append(RecoveryRecord(
            timestamp_ms=time.time() * 1000,
            error=str(error),
            action=action,
            success=success,
        ))
        if len(self._history) > RECOVERY_HISTORY_LIMIT:
            self._history = self._history[-RECOVERY_HISTORY_LIMIT:]
        metrics.record_recovery_action(action, success)

    def get_recovery_stats(self) -> dict[str, Any]:
        successful = sum(1 for record in self._history if record.success)
        return {
            "total_attempts": len(self._history),
            "successful_attempts": successful,
            "failed_attempts": len(self._history) - successful,
            "recent_attempts": [asdict(r) for r in self._history[-RECOVERY_RECENT_ATTEMPTS:]],
        }

    def clear_history(self) -> None:
        self._history = []

    # ========================================================================
    # Global hooks
    # ========================================================================

    def install_global_handlers(self, loop: asyncio.AbstractEventLoop) -> None:
        """Route uncaught exceptions and unhandled loop errors into handle_error()."""
        if self._hooks is not None:
            self.uninstall_global_handlers()

        self._hooks = _InstalledHooks(
            loop=loop,
            previous_excepthook=sys.excepthook,
            previous_thread_excepthook=threading.excepthook,
            previous_loop_handler=loop.get_exception_handler(),
        )
        sys.excepthook = self._excepthook
        threading.excepthook = self._thread_excepthook
        loop.set_exception_handler(self._loop_exception_handler)
        logger.info("Global error handlers installed", stage="ER.0")

    def uninstall_global_handlers(self) -> None:
        hooks = self._hooks
        if hooks is None:
            return

        if sys.excepthook == self._excepthook:
            sys.excepthook = hooks.previous_excepthook
        if threading.excepthook == self._thread_excepthook:
            threading.excepthook = hooks.previous_thread_excepthook
        if not hooks.loop.is_closed():
            hooks.loop.set_exception_handler(hooks.previous_loop_handler)
        for task in hooks.pending:
            task.cancel()
        self._hooks = None
        logger.info("Global error handlers removed", stage="ER.0")

    def _excepthook(self, exc_type, exc, tb) -> None:
        """Log-only: the main thread is already unwinding and the loop has stopped."""
        hooks = self._hooks
        logger.error("Uncaught exception", stage="ER.0", exc_info=(exc_type, exc, tb))
        if hooks is not None:
            hooks.previous_excepthook(exc_type, exc, tb)

    def _thread_excepthook(self, args: threading.ExceptHookArgs) -> None:
        """Worker-thread crashes happen while the loop is live, so recovery is scheduled on it."""
        hooks = self._hooks
        logger.error(
            "Uncaught exception in thread",
            stage="ER.0",
            thread=args.thread.name if args.thread is not None else None,
            exc_info=(args.exc_type, args.exc_value, args.exc_traceback),
        )
        if (
            hooks is not None
            and args.exc_value is not None
            and issubclass(args.exc_type, Exception)
            and hooks.loop.is_running()
        ):
            hooks.loop.call_soon_threadsafe(self._spawn, args.exc_value, "uncaught_exception")
        if hooks is not None:
            hooks.previous_thread_excepthook(args)

    def _loop_exception_handler(self, loop: asyncio.AbstractEventLoop, context: dict[str, Any]) -> None:
        error = context.get("exception")
        message = context.get("message", "Unhandled event loop error")
        if error is None:
            error = RuntimeError(message)
        logger.error(f"Unhandled event loop error: {message}", stage="ER.0", error=str(error))
        self._spawn(error, "event_loop")

    def _spawn(self, error: BaseException, context: str) -> None:
        hooks = self._hooks
        if hooks is None or hooks.loop.is_closed():
            return
        task = hooks.loop.create_task(self.handle_error(error, context))
        hooks.pending.add(task)
        task.add_done_callback(hooks.pending.discard)
