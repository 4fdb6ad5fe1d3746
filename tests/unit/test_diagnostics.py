"""
诊断信息单元测试
"""

import errno

import pytest

from srcpipe.build.diagnostics import (
    BuildCancelledError,
    CompileError,
    DiagnosticRecord,
    DiagnosticsCollector,
    FatalError,
    Phase,
    ScanError,
    Severity,
    diagnostic_from_exception,
)
from srcpipe.build.models import CompilationUnit, CompileResult, OutcomeStatus, TaskOutcome


class TestDiagnosticRecord:
    """DiagnosticRecord 测试"""

    def test_str(self):
        record = DiagnosticRecord(Severity.ERROR, "语法错误", Phase.COMPILE, "/src/a.ts")
        assert str(record) == "[compile] error: 语法错误 (/src/a.ts)"

    def test_to_dict(self):
        record = DiagnosticRecord(Severity.WARNING, "msg", Phase.SCAN)
        assert record.to_dict() == {'severity': 'warning', 'message': 'msg', 'phase': 'scan', 'path': None}


class TestDiagnosticFromException:
    """异常转换测试"""

    def test_build_failure_keeps_message(self):
        record = diagnostic_from_exception(CompileError("语法错误", "/src/a.ts"), Phase.COMPILE)

        assert record.message == "语法错误"
        assert record.path == "/src/a.ts"
        assert record.severity == Severity.ERROR

    def test_phase_override(self):
        """测试转换时使用调用方指定的阶段"""
        record = diagnostic_from_exception(ScanError("x"), Phase.COPY, "/p")

        assert record.phase == Phase.COPY
        assert record.path == "/p"

    def test_unexpected_exception_includes_type(self):
        record = diagnostic_from_exception(KeyError("k"), Phase.MANIFEST)
        assert record.message.startswith("KeyError")

    def test_os_error(self):
        error = FileNotFoundError(errno.ENOENT, "No such file or directory", "/src/a.ts")
        record = diagnostic_from_exception(error, Phase.SCAN, "/src/a.ts")

        assert "No such file or directory" in record.message
        assert not record.message.startswith("FileNotFoundError")

    def test_cancelled_is_fatal(self):
        assert issubclass(BuildCancelledError, FatalError)
        assert str(BuildCancelledError()) == "构建已取消"


class TestDiagnosticsCollector:
    """DiagnosticsCollector 测试"""

    def setup_method(self):
        self.collector = DiagnosticsCollector()
        self.error = DiagnosticRecord(Severity.ERROR, "e", Phase.SCAN, "/a")
        self.warning = DiagnosticRecord(Severity.WARNING, "w", Phase.COMPILE, "/b")

    def test_append_only(self):
        """测试只能追加，快照不受后续追加影响"""
        self.collector.add(self.error)
        snapshot = self.collector.records
        self.collector.add(self.warning)

        assert snapshot == (self.error,)
        assert self.collector.records == (self.error, self.warning)
        assert len(self.collector) == 2
        assert self.collector[1] == self.warning

    def test_rejects_non_records(self):
        with pytest.raises(TypeError):
            self.collector.add("not a record")

    def test_queries(self):
        self.collector.extend([self.error, self.warning])

        assert self.collector.has_errors()
        assert self.collector.errors == [self.error]
        assert self.collector.warnings == [self.warning]
        assert self.collector.by_phase(Phase.COMPILE) == [self.warning]
        assert self.collector.by_path("/a") == [self.error]
        assert list(self.collector) == [self.error, self.warning]

    def test_no_errors(self):
        self.collector.add(self.warning)
        assert not self.collector.has_errors()


class TestModels:
    """编译结果与任务结果测试"""

    def test_add_asset_files_dedup(self):
        result = CompileResult()
        result.add_asset_files(["/a.css", "/b.css"])
        result.add_asset_files(["/b.css", "/c.css"])

        assert result.included_asset_files == ["/a.css", "/b.css", "/c.css"]

    def test_to_dict(self):
        result = CompileResult()
        result.module_files["/src/a.ts"] = CompilationUnit("/src/a.ts", "/out/a.js", "x", ["/src/a.css"])

        data = result.to_dict()

        assert data['module_files'] == {'/src/a.ts': {'output_path': '/out/a.js', 'asset_paths': ['/src/a.css']}}
        assert data['diagnostics'] == []

    def test_task_outcome(self):
        record = DiagnosticRecord(Severity.ERROR, "e", Phase.SCAN, "/a")

        assert TaskOutcome.ok("/a", 1).is_ok
        assert TaskOutcome.skipped("/a").status == OutcomeStatus.SKIPPED
        assert TaskOutcome.failed("/a", record).diagnostic is record
        assert not TaskOutcome.fatal("/a", record).is_ok
