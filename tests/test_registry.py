"""
Tests for TaskRegistry: primary map and reverse dependency index.
TaskRegistry 测试：任务主表与反向依赖索引的增量维护。
"""

import pytest

from scheduler.registry import TaskRegistry
from schema import TaskOption


def _opt(*deps: str) -> TaskOption:
    return TaskOption(dependencies=list(deps), execute=lambda: None)


class TestAddRemove:
    """Tests for add/remove bookkeeping."""

    def test_add_files_task_under_each_dependency(self):
        registry = TaskRegistry()
        task = registry.add("bundle", _opt("compile", "assets"))
        assert registry.size == 1
        assert registry.get("bundle") is task
        assert registry.dependents("compile") == [task]
        assert registry.dependents("assets") == [task]

    def test_bucket_keeps_registration_order(self):
        registry = TaskRegistry()
        registry.add("b", _opt("a"))
        registry.add("c", _opt("a"))
        registry.add("d", _opt("a"))
        assert [t.name for t in registry.dependents("a")] == ["b", "c", "d"]

    def test_new_task_starts_idle(self):
        task = TaskRegistry().add("a", _opt())
        assert task.executed is False
        assert task.running is False

    def test_overwrite_replaces_record(self):
        registry = TaskRegistry()
        first = registry.add("a", _opt())
        first.executed = True
        second = registry.add("a", _opt())
        assert registry.size == 1
        assert registry.get("a") is second
        assert second.executed is False

    def test_overwrite_refiles_under_new_dependencies(self):
        registry = TaskRegistry()
        registry.add("b", _opt("a"))
        registry.add("b", _opt("x"))
        assert registry.reverse_index() == {"x": ["b"]}

    def test_remove_returns_task_and_prunes(self):
        registry = TaskRegistry()
        registry.add("b", _opt("a"))
        removed = registry.remove("b")
        assert removed is not None and removed.name == "b"
        assert registry.size == 0
        assert registry.reverse_index() == {}

    def test_remove_unknown_is_noop(self):
        registry = TaskRegistry()
        registry.add("b", _opt("a"))
        assert registry.remove("zzz") is None
        assert registry.reverse_index() == {"a": ["b"]}

    def test_remove_only_unfiles_that_task(self):
        registry = TaskRegistry()
        registry.add("b", _opt("a"))
        registry.add("c", _opt("a"))
        registry.remove("b")
        assert registry.reverse_index() == {"a": ["c"]}

    def test_duplicate_dependency_name(self):
        registry = TaskRegistry()
        registry.add("b", _opt("a", "a"))
        assert registry.reverse_index() == {"a": ["b", "b"]}
        registry.remove("b")
        assert registry.reverse_index() == {}

    def test_removing_dependency_leaves_dependents(self):
        registry = TaskRegistry()
        registry.add("a", _opt())
        registry.add("b", _opt("a"))
        registry.remove("a")
        assert "b" in registry
        assert registry.reverse_index() == {"a": ["b"]}

    def test_dependents_returns_copy(self):
        registry = TaskRegistry()
        registry.add("b", _opt("a"))
        registry.dependents("a").clear()
        assert registry.reverse_index() == {"a": ["b"]}

    def test_clear(self):
        registry = TaskRegistry()
        registry.add("a", _opt())
        registry.add("b", _opt("a"))
        registry.clear()
        assert len(registry) == 0
        assert registry.names() == []
        assert registry.reverse_index() == {}


class TestDependencyChecks:
    """Tests for the read-only dependency checks."""

    def test_unsatisfied_lists_unregistered_and_pending(self):
        registry = TaskRegistry()
        registry.add("a", _opt())
        c = registry.add("c", _opt("a", "ghost"))
        assert registry.unsatisfied_dependencies(c) == ["a", "ghost"]
        registry.get("a").executed = True
        assert registry.unsatisfied_dependencies(c) == ["ghost"]
        assert registry.dependencies_executed(c) is False

    def test_no_dependencies_is_trivially_executed(self):
        registry = TaskRegistry()
        a = registry.add("a", _opt())
        assert registry.dependencies_executed(a) is True
        assert registry.check_depend_executed("a") is False

    @pytest.mark.parametrize(
        "executed, expected",
        [((), False), (("a",), False), (("a", "b"), True)],
    )
    def test_check_depend_executed(self, executed, expected):
        registry = TaskRegistry()
        registry.add("a", _opt())
        registry.add("b", _opt())
        registry.add("c", _opt("a", "b"))
        for name in executed:
            registry.get(name).executed = True
        assert registry.check_depend_executed("c") is expected

    def test_running_dependency_is_not_executed(self):
        registry = TaskRegistry()
        registry.add("a", _opt()).running = True
        registry.add("b", _opt("a"))
        assert registry.is_executed("a") is False
        assert registry.check_depend_executed("b") is False
