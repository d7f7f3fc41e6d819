"""
Scheduler module - Core engine for dependency-ordered task execution.
Scheduler 模块 —— 按依赖顺序执行任务的核心引擎。

Components:
  - registry.py: TaskRegistry (primary map + reverse dependency index)
  - engine.py:   TaskScheduler (cascading execute / revert, lifecycle)

模块组成：
  - registry.py: TaskRegistry（任务主表 + 反向依赖索引）
  - engine.py:   TaskScheduler（级联执行 / 级联重置、生命周期管理）
"""

from scheduler.registry import TaskRegistry   # 任务注册表
from scheduler.engine import (                # 调度引擎与异常
    DependenciesNotSatisfiedError,
    SchedulerClosedError,
    SchedulerError,
    TaskScheduler,
)

__all__ = [
    "DependenciesNotSatisfiedError",
    "SchedulerClosedError",
    "SchedulerError",
    "TaskRegistry",
    "TaskScheduler",
]
