"""
构建步骤基类模块

定义构建步骤的抽象接口和基础功能。
"""

from abc import ABC, abstractmethod

from ..build_context import BuildContext, BuildState
from ..diagnostics import Phase


class BuildStep(ABC):
    """构建步骤抽象基类

    每个步骤对应状态机中的一个状态；前置条件不满足时该状态被直接跳过。
    """

    state: BuildState = BuildState.IDLE
    phase: Phase = Phase.COMPILE  # 步骤中的意外错误归属的阶段

    def __init__(self, name: str, description: str):
        self.name = name
        self.description = description

    def should_run(self, context: BuildContext) -> bool:
        """前置条件检查"""
        return True

    @abstractmethod
    async def execute(self, context: BuildContext) -> None:
        """执行构建步骤"""
        pass

    @abstractmethod
    def get_progress_range(self) -> tuple[int, int]:
        """获取此步骤的进度范围 (start_percent, end_percent)"""
        pass

    def report_start(self, context: BuildContext, message: str = "") -> None:
        start, _ = self.get_progress_range()
        context.report_progress(self.description, start, message)

    def report_end(self, context: BuildContext, message: str = "") -> None:
        _, end = self.get_progress_range()
        context.report_progress(self.description, end, message)
