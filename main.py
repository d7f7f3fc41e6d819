"""
Task Scheduler - Demo CLI entry point.
Task Scheduler —— 演示命令行入口。

Registers a small build pipeline and drives it through the scheduler with a
rich console UI that displays each cascade as it happens:

    clean -> compile -> bundle -> test
                     -> docs

注册一个小型构建流水线，并通过 Rich 控制台 UI 实时展示级联执行 / 级联重置的过程。

Usage:
    python main.py                      # execute the whole pipeline from `clean`
    python main.py --fail bundle        # make `bundle` raise, cascade stops there
    python main.py --revert compile     # execute, then revert `compile` and its dependents
    python main.py -v                   # debug logging
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from typing import Any, Callable

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich.tree import Tree

import config
from scheduler import TaskScheduler
from schema import TaskOption, TaskResult

console = Console()

# Task status -> Rich style mapping
# 任务状态 -> Rich 样式映射
_STATUS_STYLES = {
    "pending": "dim",           # 未执行：暗色
    "running": "bold yellow",   # 执行中（或执行失败后卡住）：粗体黄色
    "executed": "green",        # 已执行：绿色
}

# name -> dependencies, in registration order
# 任务名 -> 依赖列表（按注册顺序）
DEMO_PIPELINE: dict[str, list[str]] = {
    "clean": [],
    "compile": ["clean"],
    "bundle": ["compile"],
    "docs": ["compile"],
    "test": ["bundle"],
}

DEMO_ROOT = "clean"


class StepFailedError(RuntimeError):
    """Raised by a demo step selected with --fail. 被 --fail 选中的演示任务抛出的异常。"""


# ======================================================================
# Demo pipeline
# 演示流水线
# ======================================================================

def _make_step(name: str, fail: bool = False) -> tuple[Callable[[], Any], Callable[[], Any]]:
    """Build the (execute, revert) coroutine pair for one demo step."""

    async def execute() -> str:
        await asyncio.sleep(config.DEMO_STEP_DELAY)
        if fail:
            raise StepFailedError(f"{name} failed")
        return f"{name} done"

    async def revert() -> str:
        await asyncio.sleep(config.DEMO_STEP_DELAY)
        return f"{name} undone"

    return execute, revert


def build_demo_scheduler(
    fail: str | None = None,
    on_event: Callable[[str, Any], None] | None = None,
) -> TaskScheduler:
    """
    Register the demo pipeline on a fresh scheduler.
    在新建的调度器上注册演示流水线。
    """
    scheduler = TaskScheduler(on_event=on_event)
    for name, deps in DEMO_PIPELINE.items():
        execute, revert = _make_step(name, fail=(name == fail))
        scheduler.add(name, TaskOption(dependencies=deps, execute=execute, revert=revert))
    return scheduler


# ======================================================================
# Rendering
# 渲染
# ======================================================================

def build_state_tree(scheduler: TaskScheduler) -> Tree:
    """
    Rich Tree of tasks, each root task with its dependents nested below it.
    构建 Rich Tree：以无依赖任务为根，逐层挂载依赖它的任务。
    """
    tree = Tree(f"[bold]{scheduler.summary()}[/bold]")

    def _label(name: str) -> str:
        task = scheduler.get(name)
        if task is None:
            return f"[red]{name}[/red] [dim](missing)[/dim]"
        style = _STATUS_STYLES.get(task.status, "white")
        return f"[cyan]{name}[/cyan] [{style}]({task.status})[/{style}]"

    def _attach(branch: Tree, name: str, path: frozenset[str]) -> None:
        for child in scheduler.dependents(name):
            if child in path:
                branch.add(f"[red]{child}[/red] [dim](cycle)[/dim]")
                continue
            _attach(branch.add(_label(child)), child, path | {child})

    for snap in scheduler.snapshot():
        if not snap.dependencies:
            _attach(tree.add(_label(snap.name)), snap.name, frozenset({snap.name}))
    return tree


def build_results_table(title: str, results: list[TaskResult]) -> Table:
    """Rich Table of one cascade's results. 展示一次级联的结果列表。"""
    table = Table(title=title, show_lines=False)
    table.add_column("#", style="dim", width=3)
    table.add_column("Task", style="cyan")
    table.add_column("Outcome")
    table.add_column("Detail")
    for i, r in enumerate(results, 1):
        if r.ok:
            table.add_row(str(i), r.name, "[green]ok[/green]", str(r.result))
        else:
            table.add_row(str(i), r.name, "[red]error[/red]", f"{type(r.error).__name__}: {r.error}")
    return table


def on_event(event: str, data: Any) -> None:
    """
    Print scheduler events as they happen.
    实时打印调度器事件。
    """
    if event == "task_executed":
        console.print(f"  [green]✓[/green] executed [cyan]{data.name}[/cyan]")
    elif event == "task_execute_failed":
        console.print(f"  [red]✗[/red] [cyan]{data.name}[/cyan] failed: {data.error}")
    elif event == "task_reverted":
        console.print(f"  [magenta]↺[/magenta] reverted [cyan]{data.name}[/cyan]")
    elif event == "task_revert_failed":
        console.print(f"  [red]✗[/red] revert of [cyan]{data.name}[/cyan] failed: {data.error}")


# ======================================================================
# Main
# 主函数
# ======================================================================

def setup_logging(verbose: bool = False) -> None:
    """
    Configure logging with rich handler.
    使用 Rich 处理器配置日志系统，verbose=True 时启用 DEBUG 级别。
    """
    level = logging.DEBUG if verbose else getattr(logging, config.LOG_LEVEL, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False, rich_tracebacks=True)],
    )


async def run_demo(fail: str | None = None, revert: str | None = None) -> int:
    """
    Execute the demo pipeline, then optionally revert one task.
    Returns a process exit code: 1 if any entry carries an error.

    执行演示流水线，可选地再重置一个任务。任何结果带错误时返回退出码 1。
    """
    with build_demo_scheduler(fail=fail, on_event=on_event) as scheduler:
        console.print(Panel(
            " -> ".join(DEMO_PIPELINE) + f"\nroot: [bold]{DEMO_ROOT}[/bold]",
            title="[bold blue]Task Scheduler Demo[/bold blue]",
            border_style="blue",
        ))

        console.print(f"\n[bold cyan]>>> execute('{DEMO_ROOT}')[/bold cyan]")
        results = await scheduler.execute(DEMO_ROOT)
        console.print(build_results_table("Execute cascade", results))
        console.print(build_state_tree(scheduler))

        if revert:
            console.print(f"\n[bold cyan]>>> revert('{revert}')[/bold cyan]")
            reverted = await scheduler.revert(revert)
            console.print(build_results_table("Revert cascade", reverted))
            console.print(build_state_tree(scheduler))
            results = results + reverted

    return 0 if all(r.ok for r in results) else 1


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Dependency-ordered task scheduler demo")
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
    parser.add_argument("--fail", metavar="TASK", choices=list(DEMO_PIPELINE), help="make TASK's execute raise")
    parser.add_argument("--revert", metavar="TASK", choices=list(DEMO_PIPELINE), help="revert TASK after executing")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """
    程序入口：解析命令行参数，运行演示流水线。
    """
    args = parse_args(argv)
    setup_logging(args.verbose)
    return asyncio.run(run_demo(fail=args.fail, revert=args.revert))


if __name__ == "__main__":
    raise SystemExit(main())
