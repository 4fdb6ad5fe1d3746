"""
目录扫描器单元测试

测试递归扫描、排除规则、错误隔离、并发上限与取消。
"""

import asyncio

import pytest

from srcpipe.build.build_context import CancellationToken
from srcpipe.build.diagnostics import BuildCancelledError, Phase, Severity
from srcpipe.build.models import OutcomeStatus
from srcpipe.build.scanner import DirectoryScanner, join_all
from srcpipe.config.schema import ExcludeMode


def _run(coro):
    return asyncio.run(coro)


class TestDirectoryScanner:
    """DirectoryScanner 基本功能测试"""

    def test_example_tree(self, example_tree, make_config):
        """测试示例目录树的扫描结果"""
        config = make_config(example_tree, exclude=("ignored",))
        result = _run(DirectoryScanner(config).scan())

        assert result.source_files == {"/src/a.ts", "/src/b.ts", "/src/sub/c.ts"}
        assert result.asset_files == {"/src/styles/a.scss"}
        assert result.diagnostics == []
        assert result.skipped_paths == ["/src/ignored"]

    def test_excluded_directory_not_descended(self, example_tree, make_config):
        """测试被排除的目录不会被 stat 或列举"""
        config = make_config(example_tree, exclude=("ignored",))
        _run(DirectoryScanner(config).scan())

        assert example_tree.stat_calls["/src/ignored"] == 0
        assert example_tree.list_calls["/src/ignored"] == 0
        assert example_tree.stat_calls["/src/ignored/d.ts"] == 0

    def test_each_path_stat_once(self, example_tree, make_config):
        """测试每个路径最多 stat 一次"""
        config = make_config(example_tree)
        _run(DirectoryScanner(config).scan())

        assert example_tree.stat_calls
        assert all(count == 1 for count in example_tree.stat_calls.values())
        assert all(count == 1 for count in example_tree.list_calls.values())

    def test_empty_directory(self, memory_fs, make_config):
        """测试空目录"""
        fs = memory_fs(dirs=["/src"])
        result = _run(DirectoryScanner(make_config(fs)).scan())

        assert result.source_files == set()
        assert result.diagnostics == []
        assert result.outcomes["/src"] == OutcomeStatus.OK

    def test_missing_root(self, memory_fs, make_config):
        """测试根目录不存在时只产生一条诊断"""
        fs = memory_fs()
        result = _run(DirectoryScanner(make_config(fs)).scan())

        assert result.source_files == set()
        assert len(result.diagnostics) == 1
        diagnostic = result.diagnostics[0]
        assert diagnostic.phase == Phase.SCAN
        assert diagnostic.severity == Severity.ERROR
        assert diagnostic.path == "/src"
        assert result.failed_paths == ["/src"]

    def test_declaration_files_ignored(self, memory_fs, make_config):
        fs = memory_fs({"/src/a.ts": "x", "/src/types.d.ts": "declare const x: number;"})
        result = _run(DirectoryScanner(make_config(fs)).scan())

        assert result.source_files == {"/src/a.ts"}
        assert result.outcomes["/src/types.d.ts"] == OutcomeStatus.OK


class TestScannerErrors:
    """扫描错误隔离测试"""

    def test_stat_failure_isolated(self, example_tree, make_config):
        """测试单个 stat 失败只丢失该路径"""
        example_tree.fail_stat.add("/src/b.ts")
        result = _run(DirectoryScanner(make_config(example_tree, exclude=("ignored",))).scan())

        assert result.source_files == {"/src/a.ts", "/src/sub/c.ts"}
        assert len(result.diagnostics) == 1
        assert result.diagnostics[0].path == "/src/b.ts"
        assert "无法读取文件信息" in result.diagnostics[0].message
        assert result.failed_paths == ["/src/b.ts"]

    def test_nested_list_failure_isolated(self, example_tree, make_config):
        """测试子目录列举失败不影响兄弟目录"""
        example_tree.fail_list.add("/src/sub")
        result = _run(DirectoryScanner(make_config(example_tree, exclude=("ignored",))).scan())

        assert result.source_files == {"/src/a.ts", "/src/b.ts"}
        assert [d.path for d in result.diagnostics] == ["/src/sub"]
        assert "无法读取目录" in result.diagnostics[0].message

    def test_skipped_and_failed_distinguished(self, example_tree, make_config):
        """测试被排除与因错误丢失的路径可以区分"""
        example_tree.fail_stat.add("/src/sub")
        result = _run(DirectoryScanner(make_config(example_tree, exclude=("ignored",))).scan())

        assert result.skipped_paths == ["/src/ignored"]
        assert result.failed_paths == ["/src/sub"]


class TestScannerConcurrency:
    """并发控制测试"""

    def _wide_tree(self, memory_fs, width=12, depth=3):
        files = {}
        for d in range(width):
            prefix = "/src"
            for level in range(depth):
                prefix = f"{prefix}/d{d}_{level}"
            files[f"{prefix}/m{d}.ts"] = "export {};"
            files[f"/src/f{d}.ts"] = "export {};"
        return memory_fs(files, delay_steps=3)

    def test_bounded_in_flight(self, memory_fs, make_config):
        """测试同时进行的 I/O 不超过上限"""
        fs = self._wide_tree(memory_fs)
        result = _run(DirectoryScanner(make_config(fs, max_concurrency=3)).scan())

        assert len(result.source_files) == 24
        assert 1 <= fs.max_in_flight <= 3

    def test_concurrency_one_deep_tree(self, memory_fs, make_config):
        """测试并发上限为 1 时深层目录也能完成扫描"""
        path = "/src" + "".join(f"/level{i}" for i in range(20)) + "/deep.ts"
        fs = memory_fs({path: "export {};", "/src/top.ts": "export {};"})
        result = _run(DirectoryScanner(make_config(fs, max_concurrency=1)).scan())

        assert result.source_files == {path, "/src/top.ts"}
        assert fs.max_in_flight == 1

    def test_result_independent_of_concurrency(self, memory_fs, make_config):
        """测试结果与并发上限无关"""
        results = []
        for limit in (1, 2, 64):
            fs = self._wide_tree(memory_fs)
            fs.fail_stat.add("/src/f3.ts")
            result = _run(DirectoryScanner(make_config(fs, max_concurrency=limit)).scan())
            results.append((result.source_files, [d.path for d in result.diagnostics]))

        assert results[0] == results[1] == results[2]


class TestScannerCancellation:
    """取消测试"""

    def test_cancel_before_scan(self, example_tree, make_config):
        token = CancellationToken()
        token.cancel("user")

        with pytest.raises(BuildCancelledError):
            _run(DirectoryScanner(make_config(example_tree), token).scan())
        assert sum(example_tree.list_calls.values()) == 0

    def test_cancel_during_scan(self, example_tree, make_config):
        """测试扫描中途取消会中止扫描"""
        token = CancellationToken()
        original_stat = example_tree.stat

        async def cancelling_stat(path):
            token.cancel()
            return await original_stat(path)

        example_tree.stat = cancelling_stat

        with pytest.raises(BuildCancelledError):
            _run(DirectoryScanner(make_config(example_tree), token).scan())


class TestExcludeProperty:
    """排除规则性质测试"""

    @pytest.mark.parametrize("pattern", ["a.ts", "sub", "src/sub", "c"])
    def test_substring_pattern_never_in_results(self, example_tree, make_config, pattern):
        """测试 substring 模式下包含模式的路径不会出现在结果中"""
        config = make_config(example_tree, exclude=(pattern,), exclude_mode=ExcludeMode.SUBSTRING)
        result = _run(DirectoryScanner(config).scan())

        assert all(pattern not in path for path in result.source_files)


class TestJoinAll:
    """join_all 测试"""

    def test_waits_for_all_before_raising(self):
        """测试某个子任务失败时其余子任务仍运行完毕"""
        finished = []

        async def fail():
            raise ValueError("boom")

        async def slow(name):
            for _ in range(5):
                await asyncio.sleep(0)
            finished.append(name)
            return name

        async def main():
            await join_all([slow("a"), fail(), slow("b")])

        with pytest.raises(ValueError):
            _run(main())
        assert sorted(finished) == ["a", "b"]

    def test_returns_results_in_order(self):
        async def value(v):
            await asyncio.sleep(0)
            return v

        async def main():
            return await join_all(value(i) for i in range(5))

        assert _run(main()) == [0, 1, 2, 3, 4]
