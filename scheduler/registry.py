"""
TaskRegistry - Named task records plus a reverse dependency index.
TaskRegistry —— 任务记录表与反向依赖索引。

The registry holds:
  - tasks:      dict of name -> Task (primary registry)
  - dependents: dict of dependency name -> list of Task that declare it
                (reverse index, used to find cascade targets)

TaskRegistry 包含：
  - tasks:      任务名 -> Task 的主表
  - dependents: 依赖名 -> 声明了该依赖的 Task 列表（反向索引，用于查找级联目标）

Key operations:
  - add() / remove():             incremental maintenance of both maps
  - dependencies_executed():      gate used by the execute cascade
  - check_depend_executed():      read-only readiness check for late insertions

核心操作：
  - add() / remove():             增量维护两张表
  - dependencies_executed():      执行级联时使用的门控判断
  - check_depend_executed():      只读就绪检查，用于中途插入的任务
"""

from __future__ import annotations

import logging
from typing import Any, Iterator, Mapping

from schema import Task, TaskOption

logger = logging.getLogger(__name__)


class TaskRegistry:
    """
    Primary registry and reverse index of tasks.
    任务主表与反向索引。

    Dependency names are not validated: a dangling name is legal and simply
    never satisfied until a task of that name is added.
    依赖名不做校验：悬空的依赖名是合法的，只是在对应任务被添加之前永远无法满足。
    """

    def __init__(self) -> None:
        self._tasks: dict[str, Task] = {}             # 任务名 -> Task
        self._dependents: dict[str, list[Task]] = {}  # 依赖名 -> 依赖它的 Task 列表（按注册顺序）

    # ------------------------------------------------------------------
    # Maintenance
    # 注册表维护
    # ------------------------------------------------------------------

    def add(self, name: str, option: TaskOption | Mapping[str, Any]) -> Task:
        """
        Register a task, destructively replacing any task of the same name.
        注册任务；同名任务会被整体覆盖（原有 executed/running 状态丢失）。
        """
        if not isinstance(option, TaskOption):
            option = TaskOption.model_validate(option)

        previous = self._tasks.get(name)
        if previous is not None:
            self._unfile(previous)
            logger.debug("[Registry] Task '%s' replaced", name)

        task = Task.from_option(name, option)
        self._tasks[name] = task
        for dep in task.dependencies:
            self._dependents.setdefault(dep, []).append(task)

        logger.debug("[Registry] Task added: %s (depends on %s)", name, list(task.dependencies) or "nothing")
        return task

    def remove(self, name: str) -> Task | None:
        """
        Unregister a task. No-op for unknown names.
        Does not cascade: dependents keep a reference to the removed name.

        移除任务，未注册的名字直接忽略。
        不做级联：依赖它的任务仍保留对该名字的依赖，此后再也无法满足。
        """
        task = self._tasks.pop(name, None)
        if task is None:
            return None
        self._unfile(task)
        logger.debug("[Registry] Task removed: %s", name)
        return task

    def clear(self) -> None:
        self._tasks.clear()
        self._dependents.clear()

    def _unfile(self, task: Task) -> None:
        # Identity match: two records with equal fields are still distinct tasks.
        for dep in task.dependencies:
            bucket = self._dependents.get(dep)
            if bucket is None:
                continue
            for i, item in enumerate(bucket):
                if item is task:
                    del bucket[i]
                    break
            if not bucket:
                del self._dependents[dep]

    # ------------------------------------------------------------------
    # Queries
    # 查询方法
    # ------------------------------------------------------------------

    @property
    def size(self) -> int:
        return len(self._tasks)

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, name: object) -> bool:
        return name in self._tasks

    def __iter__(self) -> Iterator[Task]:
        return iter(list(self._tasks.values()))

    def get(self, name: str) -> Task | None:
        return self._tasks.get(name)

    def names(self) -> list[str]:
        return list(self._tasks)

    def dependents(self, name: str) -> list[Task]:
        """
        Tasks that declare `name` as a dependency, in registration order.
        Returns a copy so callers may iterate while the registry changes.

        返回声明了 `name` 为依赖的任务（按注册顺序）。
        返回副本，调用方遍历期间注册表变化不会影响迭代。
        """
        return list(self._dependents.get(name, ()))

    def reverse_index(self) -> dict[str, list[str]]:
        """Dependency name -> dependent task names. 反向索引的名字视图。"""
        return {dep: [t.name for t in bucket] for dep, bucket in self._dependents.items()}

    def is_executed(self, name: str) -> bool:
        task = self._tasks.get(name)
        return task is not None and task.executed

    def unsatisfied_dependencies(self, task: Task) -> list[str]:
        """
        Dependency names that are unregistered or not yet executed.
        返回尚未满足的依赖名（未注册或未执行）。
        """
        return [dep for dep in task.dependencies if not self.is_executed(dep)]

    def dependencies_executed(self, task: Task) -> bool:
        return all(self.is_executed(dep) for dep in task.dependencies)

    def check_depend_executed(self, name: str) -> bool:
        """
        True iff `name` is registered, declares at least one dependency, and
        every dependency is a registered, executed task.

        A task without dependencies is never reported ready by this check:
        it is meant for tasks inserted into a partially executed graph that
        have real prerequisites.

        当 `name` 已注册、至少声明了一个依赖、且所有依赖都已注册并执行时返回 True。
        无依赖任务永远返回 False：该检查仅用于后续（半中间）插入、带真实前置依赖的任务，
        判断其依赖是否已经初始化完毕、是否需要立即执行一次。
        """
        task = self._tasks.get(name)
        if task is None or not task.dependencies:
            return False
        return self.dependencies_executed(task)
