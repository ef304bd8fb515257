#!/usr/bin/env python3
"""
Tests for module path resolution and inlining of `mod name;` declarations.
"""

import pytest
from pathlib import Path
from rust_reduce.analysis.module_system import (
    CircularModuleError, ModuleDirectory, ModuleInliner, PathResolver,
    UnresolvedModulesError, path_attribute,
)
from rust_reduce.frontend.parser import ParseError
from rust_reduce.shared.errors import ErrorReporter
from rust_reduce.shared.nodes import Attribute, AttributeKind, FunctionDefinition, ModuleDefinition
from rust_reduce.shared.serialization import serialize_source


@pytest.fixture
def inliner(parser):
    return ModuleInliner(parser=parser)


def module(tree, *names) -> ModuleDefinition:
    """Follow a chain of module names from the top of `tree`."""
    items = tree.items
    found = None
    for name in names:
        found = next(i for i in items if isinstance(i, ModuleDefinition) and i.name == name)
        items = found.items
    return found


class TestPathResolver:
    """Candidate files follow the mod-rs rules."""

    def test_mod_rs_files(self):
        resolver = PathResolver()
        assert resolver.is_mod_rs(Path("src/lib.rs"))
        assert resolver.is_mod_rs(Path("src/a/mod.rs"))
        assert not resolver.is_mod_rs(Path("src/a.rs"))
        assert resolver.is_mod_rs(Path("src/a.rs"), via_path_attribute=True)
        assert resolver.is_mod_rs(Path("reduce_me.rs"), is_entry=True)

    def test_candidates_in_lookup_order(self):
        resolver = PathResolver()
        directory = resolver.directory_for(Path("src/a.rs"), mod_rs=False)
        decl = ModuleDefinition(name="b")
        assert resolver.candidates(decl, directory) == [Path("src/a/b.rs"), Path("src/a/b/mod.rs")]

    def test_path_attribute_relative_to_owner_outside_blocks(self):
        resolver = PathResolver()
        decl = ModuleDefinition(name="x", attrs=[Attribute(AttributeKind.OTHER, '#[path = "other/x.rs"]')])
        directory = resolver.directory_for(Path("src/a.rs"), mod_rs=False)
        assert resolver.candidates(decl, directory) == [Path("src/other/x.rs")]
        assert resolver.candidates(decl, directory.nested("inner")) == [Path("src/a/inner/other/x.rs")]

    def test_path_attribute_value(self):
        attrs = [Attribute(AttributeKind.OTHER, "#[cfg(test)]"),
                 Attribute(AttributeKind.OTHER, '#[path="t.rs"]')]
        assert path_attribute(attrs) == "t.rs"
        assert path_attribute(attrs[:1]) is None

    def test_nested_directory(self):
        directory = ModuleDirectory(Path("src"), Path("src"))
        nested = directory.nested("a").nested("b")
        assert nested.search_dir == Path("src/a/b")
        assert nested.owner_dir == Path("src")
        assert nested.inline_depth == 2


class TestModuleInliner:
    """Out-of-line modules become inline ones."""

    def test_file_without_modules_is_unchanged(self, inliner, write_tree):
        root = write_tree({"main.rs": "fn main() {}\n"})
        tree = inliner.inline_file(root / "main.rs")
        assert serialize_source(tree) == "fn main() {}\n"
        assert inliner.loaded_files == [root / "main.rs"]

    def test_mod_rs_layout(self, inliner, write_tree):
        root = write_tree({
            "src/lib.rs": "pub mod a;\nmod b;\n",
            "src/a.rs": "pub fn a() {}\n",
            "src/b/mod.rs": "mod c;\n",
            "src/b/c.rs": "fn c() {}\n",
        })
        tree = inliner.inline_file(root / "src/lib.rs")
        assert not tree.external_modules()
        assert isinstance(module(tree, "a").items[0], FunctionDefinition)
        assert module(tree, "b", "c").items[0].signature == "fn c()"
        assert module(tree, "a").visibility.is_public
        assert len(inliner.loaded_files) == 4

    def test_name_rs_wins_over_mod_rs(self, inliner, write_tree):
        root = write_tree({
            "src/main.rs": "mod a;\n",
            "src/a.rs": "fn from_file() {}\n",
            "src/a/mod.rs": "fn from_dir() {}\n",
        })
        tree = inliner.inline_file(root / "src/main.rs")
        assert module(tree, "a").items[0].signature == "fn from_file()"

    def test_non_mod_rs_submodules_live_in_stem_directory(self, inliner, write_tree):
        root = write_tree({
            "src/lib.rs": "mod a;\n",
            "src/a.rs": "mod b;\n",
            "src/a/b.rs": "struct B;\n",
        })
        tree = inliner.inline_file(root / "src/lib.rs")
        assert "struct B;" in serialize_source(tree)

    def test_inline_block_adds_directory_component(self, inliner, write_tree):
        root = write_tree({
            "src/lib.rs": "mod outer {\n    mod inner;\n}\n",
            "src/outer/inner.rs": "fn f() {}\n",
        })
        tree = inliner.inline_file(root / "src/lib.rs")
        assert module(tree, "outer", "inner").items[0].signature == "fn f()"

    def test_path_attribute_is_followed_and_removed(self, inliner, write_tree):
        root = write_tree({
            "src/lib.rs": '#[path = "elsewhere/impl.rs"]\n#[allow(unused)]\nmod imp;\n',
            "src/elsewhere/impl.rs": "mod helper;\n",
            "src/elsewhere/helper.rs": "fn help() {}\n",
        })
        tree = inliner.inline_file(root / "src/lib.rs")
        imp = module(tree, "imp")
        assert [a.source for a in imp.attrs] == ["#[allow(unused)]"]
        assert module(tree, "imp", "helper").items[0].signature == "fn help()"

    def test_cfg_attributes_are_not_evaluated(self, inliner, write_tree):
        root = write_tree({
            "src/lib.rs": "#[cfg(test)]\nmod tests;\n",
            "src/tests.rs": "#[test]\nfn it_works() {}\n",
        })
        tree = inliner.inline_file(root / "src/lib.rs")
        assert serialize_source(tree) == "#[cfg(test)]\nmod tests {\n    #[test]\n    fn it_works() {}\n}\n"

    def test_inner_attributes_of_module_file_are_kept(self, inliner, write_tree):
        root = write_tree({
            "src/lib.rs": "mod a;\n",
            "src/a.rs": "#![allow(dead_code)]\nfn f() {}\n",
        })
        tree = inliner.inline_file(root / "src/lib.rs")
        assert module(tree, "a").inner_attrs == ["#![allow(dead_code)]"]

    def test_all_unresolved_modules_are_reported(self, inliner, write_tree):
        root = write_tree({
            "src/lib.rs": "mod present;\nmod missing_one;\n\nmod missing_two;\n",
            "src/present.rs": "mod missing_three;\n",
        })
        with pytest.raises(UnresolvedModulesError) as exc_info:
            inliner.inline_file(root / "src/lib.rs")
        declarations = exc_info.value.declarations
        assert [d.name for d in declarations] == ["missing_three", "missing_one", "missing_two"]
        assert [d.location.line for d in declarations] == [1, 2, 4]
        assert declarations[1].tried == [root / "src/missing_one.rs", root / "src/missing_one/mod.rs"]
        assert "3 unresolved modules" in str(exc_info.value)

    def test_unresolved_module_diagnostics(self, inliner, write_tree):
        root = write_tree({"src/lib.rs": "fn f() {}\nmod helpers;\n"})
        with pytest.raises(UnresolvedModulesError) as exc_info:
            inliner.inline_file(root / "src/lib.rs")
        reporter = ErrorReporter()
        reporter.report_exception(exc_info.value)
        output = reporter.format_all_errors(color=False)
        assert "error[E0583]: file not found for module `helpers`" in output
        assert "2 | mod helpers;" in output
        assert "unresolved module" in output
        assert "helpers.rs" in output

    def test_circular_inclusion(self, inliner, write_tree):
        root = write_tree({
            "src/lib.rs": "mod a;\n",
            "src/a.rs": '#[path = "lib.rs"]\nmod again;\n',
        })
        with pytest.raises(CircularModuleError, match="circular module inclusion"):
            inliner.inline_file(root / "src/lib.rs")

    def test_parse_error_in_module_file(self, inliner, write_tree):
        root = write_tree({
            "src/lib.rs": "mod broken;\n",
            "src/broken.rs": "fn f() {\n",
        })
        with pytest.raises(ParseError) as exc_info:
            inliner.inline_file(root / "src/lib.rs")
        assert exc_info.value.source_file.endswith("broken.rs")
