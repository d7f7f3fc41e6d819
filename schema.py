"""
Pydantic data models for the Task Scheduler.
Defines the task record, its options and the per-task result entries.
Task Scheduler 的 Pydantic 数据模型。
定义任务记录、任务配置以及 execute/revert 返回的单条结果。
"""

from __future__ import annotations

from typing import Any, Callable

from pydantic import AliasChoices, BaseModel, Field


# ======================================================================
# Task definition
# 任务定义
# ======================================================================

class TaskOption(BaseModel):
    """
    What a caller supplies when registering a task.
    调用方注册任务时提供的配置。

    `execute` / `revert` may be plain functions or coroutine functions;
    an awaitable return value is awaited by the scheduler.
    `execute` / `revert` 可以是普通函数或协程函数，返回的 awaitable 会被调度器 await。
    """
    dependencies: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("dependencies", "depends"),
        description="Names of tasks that must be executed first",
    )  # 前置任务名列表，也接受 "depends" 键
    execute: Callable[[], Any] = Field(description="Work performed when the task runs")     # 任务实际处理函数
    revert: Callable[[], Any] | None = Field(
        default=None,
        description="Undo for execute; a missing revert is a no-op returning None",
    )  # 重置时的还原函数，缺省视为无操作


class Task(BaseModel):
    """
    A registered task. Owned exclusively by one TaskRegistry.
    已注册的任务记录，仅归属于一个 TaskRegistry。

    State flags:
      - executed: True between a successful execute and the next successful revert
      - running:  True while the execute callback is in flight (re-entrancy guard)

    状态标记：
      - executed: 从成功执行到下一次成功重置之间为 True
      - running:  execute 回调执行期间为 True（防重入标记）
    """
    name: str = Field(frozen=True, description="Unique registry key")                          # 任务名，注册表主键
    dependencies: tuple[str, ...] = Field(default=(), frozen=True)                             # 依赖任务名（注册后不可变）
    option: TaskOption                                                                         # 回调配置
    executed: bool = False                                                                     # 是否已执行
    running: bool = False                                                                      # 是否正在执行

    @classmethod
    def from_option(cls, name: str, option: TaskOption) -> Task:
        return cls(name=name, dependencies=tuple(option.dependencies), option=option)

    @property
    def status(self) -> str:
        """'executed' / 'running' / 'pending' — used for summaries and UI."""
        if self.executed:
            return "executed"
        if self.running:
            return "running"
        return "pending"

    def snapshot(self) -> TaskSnapshot:
        return TaskSnapshot(
            name=self.name,
            dependencies=list(self.dependencies),
            executed=self.executed,
            running=self.running,
        )


class TaskSnapshot(BaseModel):
    """
    Read-only view of a task's state, without its callbacks.
    任务状态的只读视图（不含回调函数），用于展示与调试，不是持久化格式。
    """
    name: str
    dependencies: list[str] = Field(default_factory=list)
    executed: bool = False
    running: bool = False


# ======================================================================
# Execution Results
# 执行结果模型
# ======================================================================

class TaskResult(BaseModel):
    """
    One entry of the list returned by execute()/revert().
    execute()/revert() 返回列表中的单条结果。

    Exactly one of `result` / `error` is meaningful: `error` holds the raw
    exception raised by the callback (or DependenciesNotSatisfiedError),
    unwrapped. Use `ok` to tell them apart.
    `error` 保存回调抛出的原始异常（不做包装），通过 `ok` 区分成功与失败。
    """
    name: str                  # 任务名
    result: Any = None         # 回调返回值
    error: Any = None          # 失败原因

    @property
    def ok(self) -> bool:
        return self.error is None
