"""
TaskScheduler - Cascading execute / revert over a TaskRegistry.
TaskScheduler —— 基于 TaskRegistry 的级联执行 / 级联重置引擎。

Execution model:
  1. execute(name) runs a task once all its dependencies are executed
  2. On success, every dependent whose dependencies are now all executed
     is executed in turn (depth-first, in registration order)
  3. revert(name) undoes an executed task, then reverts every dependent

执行模型：
  1. execute(name) 在任务的全部依赖都执行完毕后才运行该任务
  2. 成功后，依次执行所有依赖已全部满足的下游任务（深度优先，按注册顺序）
  3. revert(name) 重置已执行的任务，并级联重置所有下游任务

Everything runs on one asyncio event loop. Callbacks may await, but the
scheduler never starts concurrent work of its own: a child's cascade fully
completes before the next sibling is considered.
全部运行在单个 asyncio 事件循环上。回调可以 await，但调度器自身从不并发：
一个子任务的级联完整结束后才会处理下一个兄弟任务。

Errors never escape execute()/revert(): they are captured as TaskResult
entries and the cascade stops at the failing task.
错误不会从 execute()/revert() 抛出，而是记录为 TaskResult，并在失败节点处停止级联。
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Callable, Mapping

import config
from scheduler.registry import TaskRegistry
from schema import Task, TaskOption, TaskResult, TaskSnapshot


class SchedulerError(Exception):
    """Base class for scheduler errors. 调度器异常基类。"""


class DependenciesNotSatisfiedError(SchedulerError):
    """
    Reported (not raised) when execute() is called on a task whose
    dependencies are not all executed.
    当任务依赖尚未全部执行时，execute() 在结果中返回此异常（不会抛出）。
    """

    def __init__(self, name: str, missing: list[str]):
        self.name = name
        self.missing = missing
        super().__init__(f"Task execution failed: '{name}' dependencies are not completed.")


class SchedulerClosedError(SchedulerError):
    """Raised by add() after close(). close() 之后调用 add() 时抛出。"""


def _resolve_level(name: str) -> int:
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.WARNING


class TaskScheduler:
    """
    Owns a TaskRegistry and drives cascading execute / revert over it.
    持有一个 TaskRegistry，并在其上驱动级联执行与级联重置。

    Each scheduler is an independent instance with an explicit lifecycle
    (construct, then close()); there is no process-wide registry.
    每个调度器都是独立实例，生命周期显式（构造 -> close()），不存在进程级全局注册表。
    """

    def __init__(
        self,
        logger: logging.Logger | None = None,
        on_event: Callable[[str, Any], None] | None = None,
    ):
        """
        Args:
            logger:   Diagnostic channel; defaults to this module's logger.
            on_event: Optional callback(event, data) for UI/logging updates.
            logger:   诊断日志通道，缺省使用本模块 logger。
            on_event: 可选回调 callback(事件名, 数据)，用于 UI 或日志更新。
        """
        self._registry = TaskRegistry()
        self._log = logger or logging.getLogger(__name__)
        self._on_event = on_event or (lambda *_: None)
        self._unknown_level = _resolve_level(config.UNKNOWN_TASK_LOG_LEVEL)
        self._closed = False

    # ------------------------------------------------------------------
    # Registry maintenance
    # 注册表维护
    # ------------------------------------------------------------------

    @property
    def size(self) -> int:
        return self._registry.size

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def registry(self) -> TaskRegistry:
        return self._registry

    def __len__(self) -> int:
        return self._registry.size

    def __contains__(self, name: object) -> bool:
        return name in self._registry

    def add(self, name: str, option: TaskOption | Mapping[str, Any]) -> Task:
        """
        Register (or destructively replace) a task.
        注册任务（同名则整体覆盖）。
        """
        if self._closed:
            raise SchedulerClosedError(f"Cannot add task '{name}': scheduler is closed")
        task = self._registry.add(name, option)
        self._emit("task_added", task.snapshot())
        return task

    def remove(self, name: str) -> None:
        """Unregister a task; dependents are left untouched. 移除任务，不级联。"""
        task = self._registry.remove(name)
        if task is not None:
            self._emit("task_removed", task.snapshot())

    def get(self, name: str) -> Task | None:
        return self._registry.get(name)

    def dependents(self, name: str) -> list[str]:
        return [t.name for t in self._registry.dependents(name)]

    def check_depend_executed(self, name: str) -> bool:
        """See TaskRegistry.check_depend_executed. 只读的依赖就绪检查。"""
        return self._registry.check_depend_executed(name)

    # ------------------------------------------------------------------
    # Execute cascade
    # 级联执行
    # ------------------------------------------------------------------

    async def execute(self, name: str) -> list[TaskResult]:
        """
        Execute `name`, then every dependent that becomes ready.
        执行 `name`，随后执行所有因此满足依赖的下游任务。

        Returns:
          - []                          unknown name, or already executed / running
          - [error entry]               dependencies not executed, or callback failed
          - [root entry, *cascaded]     success, dependents appended depth-first

        A failed callback leaves the task with running=True and executed=False;
        only re-adding the task resets it.
        回调失败后任务保持 running=True、executed=False，只有重新 add 才能复位。
        """
        task = self._registry.get(name)
        if task is None:
            self._log.log(self._unknown_level, "Task execution failed: '%s' does not exist.", name)
            return []

        missing = self._registry.unsatisfied_dependencies(task)
        if missing:
            self._log.debug("[Scheduler] %s blocked on %s", name, missing)
            return [TaskResult(name=name, error=DependenciesNotSatisfiedError(name, missing))]

        if task.executed or task.running:
            return []

        task.running = True
        self._log.debug("[Scheduler] Executing %s", name)
        try:
            value = await self._invoke(task.option.execute)
        except Exception as exc:
            self._log.warning("[Scheduler] Task %s failed: %r", name, exc)
            failed = TaskResult(name=name, error=exc)
            self._emit("task_execute_failed", failed)
            return [failed]

        root = TaskResult(name=name, result=value)
        results = [root]
        task.running = False
        task.executed = True
        self._log.info("[Scheduler] Task %s executed", name)
        self._emit("task_executed", root)

        # 任务执行完毕之后，执行依赖这个任务且依赖已全部满足的其他任务
        for child in self._registry.dependents(name):
            if self._registry.dependencies_executed(child):
                results.extend(await self.execute(child.name))

        return results

    # ------------------------------------------------------------------
    # Revert cascade
    # 级联重置
    # ------------------------------------------------------------------

    async def revert(self, name: str) -> list[TaskResult]:
        """
        Revert an executed task, then every task that depends on it.
        重置已执行的任务，并级联重置所有依赖它的任务。

        A failed revert callback stops the cascade and leaves the task
        (and everything downstream) executed.
        重置回调失败时停止级联，该任务及其下游保持 executed 状态。
        """
        task = self._registry.get(name)
        if task is None or not task.executed:
            return []

        try:
            value = await self._invoke(task.option.revert)
        except Exception as exc:
            self._log.warning("[Scheduler] Revert of %s failed: %r", name, exc)
            failed = TaskResult(name=name, error=exc)
            self._emit("task_revert_failed", failed)
            return [failed]

        root = TaskResult(name=name, result=value)
        results = [root]
        task.executed = False
        task.running = False
        self._log.info("[Scheduler] Task %s reverted", name)
        self._emit("task_reverted", root)

        for child in self._registry.dependents(name):
            results.extend(await self.revert(child.name))

        return results

    @staticmethod
    async def _invoke(callback: Callable[[], Any] | None) -> Any:
        if callback is None:
            return None
        value = callback()
        if inspect.isawaitable(value):
            value = await value
        return value

    # ------------------------------------------------------------------
    # Lifecycle
    # 生命周期
    # ------------------------------------------------------------------

    def close(self) -> None:
        """
        Drop every task and refuse further add() calls. Idempotent.
        清空所有任务并拒绝后续 add()，可重复调用。
        """
        if self._closed:
            return
        self._registry.clear()
        self._closed = True
        self._log.debug("[Scheduler] Closed")
        self._emit("scheduler_closed", None)

    def __enter__(self) -> TaskScheduler:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Inspection
    # 状态查看
    # ------------------------------------------------------------------

    def snapshot(self) -> list[TaskSnapshot]:
        return [task.snapshot() for task in self._registry]

    def to_dict(self) -> dict[str, Any]:
        """
        Serialize task states and the reverse index (no callbacks).
        序列化任务状态与反向索引（不含回调），仅用于展示与调试。
        """
        return {
            "size": self._registry.size,
            "tasks": {s.name: s.model_dump() for s in self.snapshot()},
            "dependents": self._registry.reverse_index(),
        }

    def summary(self) -> str:
        """
        One-line summary for logging, e.g.
        Scheduler[3 tasks: 1 executed, 0 running, 2 pending]
        生成单行状态摘要，用于日志输出。
        """
        counts = {"executed": 0, "running": 0, "pending": 0}
        for task in self._registry:
            counts[task.status] += 1
        parts = ", ".join(f"{v} {k}" for k, v in counts.items())
        return f"Scheduler[{self._registry.size} tasks: {parts}]"

    def _emit(self, event: str, data: Any = None) -> None:
        """
        Emit an event to the UI callback; handler errors are logged, never raised.
        向 UI 回调发送事件；回调异常只记录日志，不影响级联流程。
        """
        try:
            self._on_event(event, data)
        except Exception:
            self._log.exception("[Scheduler] on_event handler failed for %s", event)
