"""
Configuration module for the Task Scheduler.
Loads settings from environment variables or .env file.
Task Scheduler 配置模块。
从环境变量或 .env 文件加载所有配置项。
"""

import os
from dotenv import load_dotenv

load_dotenv()  # 自动读取项目根目录的 .env 文件（若存在），优先级低于系统环境变量

# --- Logging ---
# --- 日志 ---
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()  # CLI 默认日志级别（--verbose 时强制 DEBUG）

# Level of the diagnostic emitted when execute() is called with an unknown task name.
# execute() 遇到未注册任务名时输出诊断信息所用的日志级别。
UNKNOWN_TASK_LOG_LEVEL = os.getenv("UNKNOWN_TASK_LOG_LEVEL", "WARNING").upper()

# --- Demo pipeline ---
# --- 演示流水线参数 ---
DEMO_STEP_DELAY = float(os.getenv("DEMO_STEP_DELAY", "0.05"))  # 每个演示任务回调模拟耗时（秒）
