"""爬虫模块包。

包含爬虫系统的核心执行组件：
- Scheduler: 爬取调度器，负责生成首页任务并等待队列清空
- Worker: 工作器，负责执行具体的爬取任务
- 地址构造、响应解析与分页规划
"""

from .scheduler import Scheduler
from .worker import RunStats, Worker

__all__ = ["RunStats", "Scheduler", "Worker"]
