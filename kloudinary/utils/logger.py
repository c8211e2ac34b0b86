"""
日志系统配置
"""

import inspect
import sys
import time
from contextlib import contextmanager
from functools import wraps
from pathlib import Path
from typing import Optional

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"


def setup_logging(level: str = "INFO",
                  log_file: Optional[str] = "kloudinary.log",
                  log_dir: str = "logs",
                  console_output: bool = True,
                  json_format: bool = False):
    """
    设置日志系统

    Args:
        level: 日志级别
        log_file: 日志文件名，为空时不写文件
        log_dir: 日志目录
        console_output: 是否输出到控制台
        json_format: 文件日志是否使用JSON格式

    Returns:
        loguru日志记录器
    """
    # 移除现有处理器
    logger.remove()

    level = level.upper()

    # 控制台输出
    if console_output:
        logger.add(
            sys.stdout,
            format=CONSOLE_FORMAT,
            level=level,
            colorize=True
        )

    if log_file:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)

        # 文件输出
        logger.add(
            log_path / log_file,
            format=FILE_FORMAT,
            level=level,
            rotation="10 MB",
            retention="7 days",
            compression="zip",
            serialize=json_format,
            encoding="utf-8",
            enqueue=True
        )

        # 错误日志单独文件
        logger.add(
            log_path / "error.log",
            format=FILE_FORMAT,
            level="ERROR",
            rotation="10 MB",
            retention="30 days",
            compression="zip",
            encoding="utf-8",
            enqueue=True
        )

    return logger


def get_logger(name: str = None):
    """获取日志记录器"""
    if name:
        return logger.bind(name=name)
    return logger


@contextmanager
def _timed(name: str, slow_threshold: Optional[float]):
    start_time = time.perf_counter()
    try:
        yield
    except Exception as e:
        logger.error(f"[PERF] {name} 执行失败，耗时: {time.perf_counter() - start_time:.3f}s，错误: {e}")
        raise

    duration = time.perf_counter() - start_time
    if slow_threshold is not None and duration > slow_threshold:
        logger.warning(f"[PERF] {name} 执行较慢，耗时: {duration:.3f}s")
    else:
        logger.debug(f"[PERF] {name} 执行完成，耗时: {duration:.3f}s")


def log_performance(func_name: str = None, slow_threshold: Optional[float] = None):
    """
    性能日志装饰器，支持同步和异步函数

    Args:
        func_name: 日志中显示的名称，默认使用模块名加函数名
        slow_threshold: 超过该耗时（秒）时以 WARNING 级别记录
    """
    def decorator(func):
        name = func_name or f"{func.__module__}.{func.__qualname__}"

        if inspect.iscoroutinefunction(func):
            @wraps(func)
            async def async_wrapper(*args, **kwargs):
                with _timed(name, slow_threshold):
                    return await func(*args, **kwargs)
            return async_wrapper

        @wraps(func)
        def sync_wrapper(*args, **kwargs):
            with _timed(name, slow_threshold):
                return func(*args, **kwargs)
        return sync_wrapper

    return decorator
