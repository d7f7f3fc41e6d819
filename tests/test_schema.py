"""
Tests for the pydantic models in schema.py.
schema.py 中 Pydantic 模型的测试。
"""

import pytest
from pydantic import ValidationError

from schema import Task, TaskOption, TaskResult, TaskSnapshot


class TestTaskOption:
    """Tests for TaskOption validation."""

    def test_defaults(self):
        option = TaskOption(execute=lambda: 1)
        assert option.dependencies == []
        assert option.revert is None

    def test_depends_alias(self):
        option = TaskOption.model_validate({"depends": ["a", "b"], "execute": lambda: 1})
        assert option.dependencies == ["a", "b"]

    def test_execute_required(self):
        with pytest.raises(ValidationError):
            TaskOption.model_validate({"dependencies": []})

    def test_execute_must_be_callable(self):
        with pytest.raises(ValidationError):
            TaskOption.model_validate({"execute": "not callable"})


class TestTask:
    """Tests for the Task record."""

    def test_from_option(self):
        option = TaskOption(dependencies=["a"], execute=lambda: 1)
        task = Task.from_option("b", option)
        assert task.name == "b"
        assert task.dependencies == ("a",)
        assert task.option is option
        assert task.status == "pending"

    def test_name_and_dependencies_are_frozen(self):
        task = Task.from_option("a", TaskOption(execute=lambda: 1))
        with pytest.raises(ValidationError):
            task.name = "b"
        with pytest.raises(ValidationError):
            task.dependencies = ("x",)

    def test_dependencies_detached_from_option(self):
        option = TaskOption(dependencies=["a"], execute=lambda: 1)
        task = Task.from_option("b", option)
        option.dependencies.append("late")
        assert task.dependencies == ("a",)

    def test_status(self):
        task = Task.from_option("a", TaskOption(execute=lambda: 1))
        task.running = True
        assert task.status == "running"
        task.running = False
        task.executed = True
        assert task.status == "executed"

    def test_snapshot(self):
        task = Task.from_option("b", TaskOption(dependencies=["a"], execute=lambda: 1))
        task.executed = True
        assert task.snapshot() == TaskSnapshot(name="b", dependencies=["a"], executed=True)


class TestTaskResult:
    """Tests for TaskResult."""

    def test_ok(self):
        assert TaskResult(name="a", result="a").ok is True

    def test_error_keeps_raw_exception(self):
        exc = ValueError("boom")
        result = TaskResult(name="a", error=exc)
        assert result.ok is False
        assert result.error is exc
        assert result.result is None
