"""结果输出模块。

提供统一的批次写出接口与两种实现：
- DropBoxSink: 每个批次写成 ``<drop_box>/<run_id>/<batch_id>.txt``
- MemorySink: 保存在内存中，用于测试与试运行

运行ID与批次ID均由可注入的ID生成器产生，默认使用 UUID4。
"""

from __future__ import annotations

import uuid
from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger

from .metrics import BATCHES_WRITTEN

if TYPE_CHECKING:
    from collections.abc import Callable

    from ..scraper.tasks import OutputBatch


def uuid_factory() -> str:
    return str(uuid.uuid4())


class BatchSink:
    def prepare(self) -> None:
        """可选：在一次非空的爬取开始前准备资源。默认无操作。"""
        return

    def write(self, batch: OutputBatch) -> Path | None:
        raise NotImplementedError


class MemorySink(BatchSink):
    """将批次保存在内存中。"""

    def __init__(self) -> None:
        self.batches: list[OutputBatch] = []

    def write(self, batch: OutputBatch) -> None:
        self.batches.append(batch)
        BATCHES_WRITTEN.inc()


class DropBoxSink(BatchSink):
    """将每个批次写入运行目录下的独立文件。

    Attributes:
        drop_box: 输出根目录。
        run_id: 本次运行的ID，同时作为运行目录名。
        run_dir: 本次运行的输出目录。
    """

    def __init__(
        self,
        drop_box: str | Path,
        *,
        run_id: str | None = None,
        id_factory: Callable[[], str] = uuid_factory,
    ):
        self._id_factory = id_factory
        self.drop_box = Path(drop_box)
        self.run_id = run_id or id_factory()
        self.run_dir = self.drop_box / self.run_id

    def prepare(self) -> None:
        self.run_dir.mkdir(parents=True, exist_ok=True)
        logger.info("Writing batches to {}", self.run_dir)

    def write(self, batch: OutputBatch) -> Path:
        """写出单个批次，写入失败时直接抛出异常，不做重试。"""
        path = self.run_dir / f"{self._id_factory()}.txt"
        # 先写临时文件再重命名，读取方不会看到写了一半的文件
        part = path.with_suffix(".part")
        part.write_text(batch.render(), encoding="utf-8")
        part.replace(path)
        BATCHES_WRITTEN.inc()
        return path
