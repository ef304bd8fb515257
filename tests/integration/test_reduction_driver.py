#!/usr/bin/env python3
"""
End-to-end tests for the reduction driver with in-process oracles.
"""

import pytest
from tests.test_utils import PredicateOracle
from rust_reduce.analysis.module_system import ModuleInliner, UnresolvedModulesError
from rust_reduce.compiler.driver import ReductionDriver, find_entry_point
from rust_reduce.runtime.formatter import FormatterResult
from rust_reduce.shared.errors import InitialRunNotInterestingError, ReduceError
from rust_reduce.shared.nodes import FunctionDefinition, SourceFile, Block

pytestmark = pytest.mark.integration

HELLO = (
    "/// Unused docs\n"
    "#[derive(Debug)]\n"
    "pub struct Unused {\n"
    "    pub field: u8,\n"
    "}\n"
    "\n"
    "fn main() {\n"
    "    println!(\"Hello, world!\");\n"
    "}\n"
)
REDUCED = "fn main() {\n    println!(\"Hello, world!\");\n}\n"


def says_hello(source: str) -> bool:
    return "fn main()" in source and "Hello, world!" in source


@pytest.fixture
def driver_for(parser):
    def _driver_for(path, predicate=says_hello, formatter=None):
        oracle = PredicateOracle(predicate, path)
        return ReductionDriver(oracle, formatter=formatter, inliner=ModuleInliner(parser=parser))
    return _driver_for


class TestReductionDriver:
    def test_single_file(self, tmp_path, driver_for):
        path = tmp_path / "main.rs"
        path.write_text(HELLO, encoding="utf-8")
        summary = driver_for(path).reduce()

        assert path.read_text(encoding="utf-8") == REDUCED
        assert summary.backup_path.read_text(encoding="utf-8") == HELLO
        assert summary.minimised_path.read_text(encoding="utf-8") == REDUCED
        assert summary.original_size == len(HELLO.encode())
        assert summary.final_size == len(REDUCED.encode())
        assert summary.accepted == 1
        assert [s.name for s in summary.pass_stats][0] == "prune-items"

    def test_oracle_calls_are_counted(self, tmp_path, driver_for):
        path = tmp_path / "main.rs"
        path.write_text(HELLO, encoding="utf-8")
        driver = driver_for(path)
        summary = driver.reduce()
        assert summary.oracle_calls == driver.oracle.calls
        # initial, inlined, at least one candidate, final re-check
        assert summary.oracle_calls >= 4

    def test_initial_input_not_interesting(self, tmp_path, driver_for):
        path = tmp_path / "main.rs"
        path.write_text("fn main() {}\n", encoding="utf-8")
        with pytest.raises(InitialRunNotInterestingError) as exc_info:
            driver_for(path).reduce()
        assert exc_info.value.stage == "initial input"
        assert not (tmp_path / "main.rs.orig").exists()
        assert path.read_text(encoding="utf-8") == "fn main() {}\n"

    def test_inlined_input_not_interesting(self, write_tree, driver_for):
        root = write_tree({"src/main.rs": "mod a;\n\nfn main() {}\n", "src/a.rs": "fn a() {}\n"})
        path = root / "src/main.rs"
        # Interesting only while the module is out of line
        with pytest.raises(InitialRunNotInterestingError) as exc_info:
            driver_for(path, lambda s: "mod a;" in s).reduce()
        assert exc_info.value.stage == "inlined input"
        assert (root / "src/main.rs.orig").read_text(encoding="utf-8") == "mod a;\n\nfn main() {}\n"

    def test_multi_file_crate_is_inlined(self, write_tree, driver_for):
        root = write_tree({
            "src/main.rs": "mod greet;\n\nfn main() {\n    greet::hello();\n}\n",
            "src/greet.rs": "pub fn hello() {\n    println!(\"Hello, world!\");\n}\n\npub fn unused() {}\n",
        })
        path = root / "src/main.rs"
        # Before inlining the marker lives in greet.rs, behind `mod greet;`
        summary = driver_for(
            path, lambda s: "greet::hello" in s and ("Hello, world!" in s or "mod greet;" in s)).reduce()
        result = path.read_text(encoding="utf-8")
        assert "mod greet {" in result
        assert "unused" not in result
        # Module files are left alone; only the entry file is rewritten
        assert "pub fn unused() {}" in (root / "src/greet.rs").read_text(encoding="utf-8")
        assert summary.original_size == len(
            (root / "src/main.rs.orig").read_bytes()) + len((root / "src/greet.rs").read_bytes())

    def test_unresolved_modules_abort_before_reduction(self, write_tree, driver_for):
        root = write_tree({"src/lib.rs": "mod a;\nmod b;\n\npub fn f() {}\n"})
        path = root / "src/lib.rs"
        driver = driver_for(path, lambda s: True)
        with pytest.raises(UnresolvedModulesError) as exc_info:
            driver.reduce()
        assert [d.name for d in exc_info.value.declarations] == ["a", "b"]
        assert path.read_text(encoding="utf-8") == "mod a;\nmod b;\n\npub fn f() {}\n"

    def test_run_collects_errors(self, write_tree, driver_for):
        root = write_tree({"src/lib.rs": "mod a;\nmod b;\n"})
        result = driver_for(root / "src/lib.rs", lambda s: True).run()
        assert not result.success
        assert result.summary is None
        assert len(result.reporter.errors) == 2
        assert "file not found for module `a`" in result.reporter.format_all_errors(color=False)

    def test_run_reports_file_system_errors(self, tmp_path, driver_for, monkeypatch):
        path = tmp_path / "main.rs"
        path.write_text(HELLO, encoding="utf-8")

        def refuse_backup(target):
            raise PermissionError(13, "Permission denied", f"{target}.orig")

        monkeypatch.setattr("rust_reduce.compiler.driver.backup_file", refuse_backup)
        result = driver_for(path).run()
        assert not result.success
        assert result.has_errors()
        output = result.reporter.format_all_errors(color=False)
        assert f"could not access `{path}.orig`: Permission denied" in output
        assert path.read_text(encoding="utf-8") == HELLO

    def test_existing_backup_is_kept(self, tmp_path, driver_for):
        path = tmp_path / "main.rs"
        path.write_text(HELLO, encoding="utf-8")
        backup = tmp_path / "main.rs.orig"
        backup.write_text("// from an earlier run\n", encoding="utf-8")
        driver_for(path).reduce()
        assert backup.read_text(encoding="utf-8") == "// from an earlier run\n"

    def test_rejected_candidate_is_replaced_on_disk(self, tmp_path, driver_for):
        path = tmp_path / "main.rs"
        path.write_text(REDUCED, encoding="utf-8")
        driver = driver_for(path)
        driver.reduce()

        tree = SourceFile(items=[FunctionDefinition(signature="fn main()", body=Block.empty())])
        assert not driver.try_candidate(tree)
        assert path.read_text(encoding="utf-8") == REDUCED

    def test_formatter_runs_once_and_failure_is_not_fatal(self, tmp_path, driver_for):
        path = tmp_path / "main.rs"
        path.write_text(HELLO, encoding="utf-8")
        calls = []

        def formatter():
            calls.append(path.read_text(encoding="utf-8"))
            return FormatterResult(ok=False, message="rustfmt not found")

        summary = driver_for(path, formatter=formatter).reduce()
        assert calls == [REDUCED]
        assert summary.formatted is False
        assert summary.minimised_path.exists()

    def test_formatted_result_is_saved(self, tmp_path, driver_for):
        path = tmp_path / "main.rs"
        path.write_text(HELLO, encoding="utf-8")

        def formatter():
            path.write_text(path.read_text(encoding="utf-8") + "// formatted\n", encoding="utf-8")
            return FormatterResult(ok=True)

        summary = driver_for(path, formatter=formatter).reduce()
        assert summary.formatted
        assert summary.minimised_path.read_text(encoding="utf-8").endswith("// formatted\n")


class TestTrivialTestLibrary:
    """
    A library whose only code is one trivially passing unit test, reduced
    while `cargo test` output contains "test result: ok".
    """

    SOURCE = (
        "#[cfg(test)]\n"
        "mod tests {\n"
        "    #[test]\n"
        "    fn it_works() {\n"
        "        assert_eq!(2 + 2, 4);\n"
        "    }\n"
        "}\n"
    )

    @staticmethod
    def reports_ok(_source: str) -> bool:
        # Zero tests still report "test result: ok. 0 passed"
        return True

    def test_whole_test_module_is_pruned(self, write_tree, driver_for):
        root = write_tree({"src/lib.rs": self.SOURCE})
        path = root / "src/lib.rs"
        summary = driver_for(path, self.reports_ok).reduce()

        assert path.read_text(encoding="utf-8") == ""
        assert summary.minimised_path.read_text(encoding="utf-8") == ""
        assert (root / "src/lib.rs.orig").read_text(encoding="utf-8") == self.SOURCE
        assert summary.pass_stats[0].name == "prune-items"
        assert summary.pass_stats[0].accepted == 1
        assert summary.final_size == 0


class TestEntryPoint:
    def test_prefers_main(self, write_tree):
        root = write_tree({"src/main.rs": "", "src/lib.rs": ""})
        assert find_entry_point(root) == root / "src/main.rs"

    def test_falls_back_to_lib(self, write_tree):
        root = write_tree({"src/lib.rs": ""})
        assert find_entry_point(root) == root / "src/lib.rs"

    def test_missing(self, tmp_path):
        with pytest.raises(ReduceError, match="could not find"):
            find_entry_point(tmp_path)
