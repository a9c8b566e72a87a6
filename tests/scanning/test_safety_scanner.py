"""Tests for the unsafe counter over tree-sitter-rust syntax trees."""

import pytest

pytest.importorskip("tree_sitter_rust")

from geiger_audit.exceptions import EncodingScanError, FileReadError, ScanFileError, SyntaxScanError  # noqa: E402
from geiger_audit.scanning.counters import Count, CounterBlock  # noqa: E402
from geiger_audit.scanning.safety_scanner import (  # noqa: E402
    NodeKind,
    classify,
    count_unsafe,
    find_unsafe_in_file,
)
from geiger_audit.scanning.treesitter_parser import RustParser, first_error_position  # noqa: E402


def _count(code: str, include_tests: bool = False) -> CounterBlock:
    tree = RustParser().parse(code.encode("utf-8"))
    assert not tree.root_node.has_error, code
    return count_unsafe(tree, include_tests)


def _first_of_type(code: str, node_type: str):
    tree = RustParser().parse(code.encode("utf-8"))
    stack = [tree.root_node]
    while stack:
        node = stack.pop()
        if node.type == node_type:
            return node
        stack.extend(reversed(node.children))
    raise AssertionError(f"no {node_type} in {code!r}")


class TestFunctions:
    def test_safe_and_unsafe_functions(self):
        counts = _count("fn a() {}\nunsafe fn b() {}\n")
        assert counts.functions == Count(safe=1, unsafe=1)
        assert counts.exprs == Count()

    def test_pub_unsafe_fn(self):
        counts = _count("pub unsafe fn b() {}\n")
        assert counts.functions == Count(safe=0, unsafe=1)

    def test_unsafe_fn_body_is_not_an_unsafe_scope(self):
        counts = _count("unsafe fn b() { g(); }\n")
        assert counts.exprs == Count(safe=1, unsafe=0)

    def test_nested_fn_is_counted(self):
        counts = _count("fn outer() { fn inner() {} }\n")
        assert counts.functions == Count(safe=2, unsafe=0)

    def test_extern_signatures_are_not_counted(self):
        counts = _count('extern "C" {\n    fn ext();\n}\n')
        assert counts.functions == Count()


class TestUnsafeScopes:
    def test_expression_in_unsafe_block(self):
        counts = _count("fn c() { unsafe { x(); } }\n")
        assert counts.functions == Count(safe=1, unsafe=0)
        assert counts.exprs == Count(safe=0, unsafe=1)

    def test_nested_unsafe_blocks_both_count(self):
        counts = _count("fn f() { unsafe { unsafe { x() }; y() } }\n")
        assert counts.exprs == Count(safe=0, unsafe=2)

    def test_state_restored_after_unsafe_block(self):
        counts = _count("fn f() {\n    unsafe { x(); }\n    y();\n}\n")
        assert counts.exprs == Count(safe=1, unsafe=1)

    def test_sibling_unsafe_blocks(self):
        code = "fn f() {\n    unsafe { a(); }\n    b();\n    unsafe { c(); }\n}\n"
        assert _count(code).exprs == Count(safe=1, unsafe=2)


class TestExpressions:
    def test_paths_and_literals_are_not_counted(self):
        counts = _count("fn f() -> i32 { 42 }\nfn g() { x; }\n")
        assert counts.exprs == Count()

    def test_call_and_binary_expression(self):
        counts = _count("fn f() { let a = 1 + 2; g(a); }\n")
        assert counts.exprs == Count(safe=2, unsafe=0)

    def test_macro_call_is_one_expression(self):
        counts = _count('fn f() { println!("{}", g(h(1))); }\n')
        assert counts.exprs == Count(safe=1, unsafe=0)

    def test_method_call_is_one_expression(self):
        counts = _count("fn f() { unsafe { x.foo(); } }\n")
        assert counts.exprs == Count(safe=0, unsafe=1)

    def test_turbofish_method_call_is_one_expression(self):
        counts = _count("fn f() { x.foo::<u8>(); }\n")
        assert counts.exprs == Count(safe=1, unsafe=0)

    def test_field_read_is_still_counted(self):
        counts = _count("fn f() { let a = s.f; }\n")
        assert counts.exprs == Count(safe=1, unsafe=0)

    def test_if_let_is_one_expression(self):
        counts = _count("fn f() { if let Some(a) = b {} }\n")
        assert counts.exprs == Count(safe=1, unsafe=0)

    def test_while_let_is_one_expression(self):
        counts = _count("fn f() { while let Some(a) = b {} }\n")
        assert counts.exprs == Count(safe=1, unsafe=0)

    def test_macro_input_is_not_scanned(self):
        counts = _count("macro_rules! m {\n    () => { unsafe { x() } };\n}\n")
        assert counts == CounterBlock()


class TestItems:
    CODE = """
struct S;
trait T {}
unsafe trait U {}
impl T for S {}
unsafe impl U for S {}
impl S {
    fn m(&self) {}
    unsafe fn n(&self) {}
}
"""

    def test_traits(self):
        assert _count(self.CODE).item_traits == Count(safe=1, unsafe=1)

    def test_impls(self):
        assert _count(self.CODE).item_impls == Count(safe=2, unsafe=1)

    def test_methods(self):
        counts = _count(self.CODE)
        assert counts.methods == Count(safe=1, unsafe=1)
        assert counts.functions == Count()

    def test_trait_default_method_is_not_a_method(self):
        code = "trait T {\n    fn d(&self) { g(); }\n    unsafe fn r(&self);\n}\n"
        counts = _count(code)
        assert counts.item_traits == Count(safe=1, unsafe=0)
        assert counts.methods == Count()
        assert counts.functions == Count()
        assert counts.exprs == Count(safe=1, unsafe=0)


class TestTestExclusion:
    TEST_MODULE = """
fn lib() {}

#[cfg(test)]
mod tests {
    #[test]
    fn t() { unsafe { x(); } }
}
"""

    def test_cfg_test_module_skipped(self):
        counts = _count(self.TEST_MODULE)
        assert counts.functions == Count(safe=1, unsafe=0)
        assert counts.exprs == Count()

    def test_cfg_test_module_included_on_request(self):
        counts = _count(self.TEST_MODULE, include_tests=True)
        assert counts.functions == Count(safe=2, unsafe=0)
        assert counts.exprs == Count(safe=0, unsafe=1)

    def test_test_fn_skipped(self):
        counts = _count("#[test]\nfn t() { unsafe { x(); } }\n")
        assert counts == CounterBlock()

    def test_cfg_test_fn_skipped(self):
        counts = _count("#[cfg(test)]\nunsafe fn helper() {}\n")
        assert counts == CounterBlock()

    def test_doc_comment_between_attribute_and_fn(self):
        counts = _count("#[test]\n/// checks things\nfn t() {}\n")
        assert counts.functions == Count()

    def test_compound_cfg_is_not_recognised(self):
        counts = _count("#[cfg(all(test, unix))]\nmod m {\n    fn f() {}\n}\n")
        assert counts.functions == Count(safe=1, unsafe=0)

    def test_plain_module_is_scanned(self):
        counts = _count("mod m {\n    unsafe fn f() {}\n}\n")
        assert counts.functions == Count(safe=0, unsafe=1)


class TestClassify:
    def test_method_vs_function(self):
        method = _first_of_type("impl S { fn m(&self) {} }", "function_item")
        assert classify(method) is NodeKind.METHOD
        function = _first_of_type("fn f() {}", "function_item")
        assert classify(function) is NodeKind.FUNCTION

    def test_body_block_is_not_an_expression(self):
        block = _first_of_type("fn f() {}", "block")
        assert classify(block) is NodeKind.OTHER

    def test_token_tree_is_opaque(self):
        tree = _first_of_type("fn f() { m!(a b c); }", "token_tree")
        assert classify(tree) is NodeKind.OPAQUE


class TestFindUnsafeInFile:
    def test_counts_file(self, tmp_path):
        path = tmp_path / "lib.rs"
        path.write_text("pub unsafe fn f() {}\n")
        assert find_unsafe_in_file(path).functions == Count(safe=0, unsafe=1)

    def test_deterministic(self, tmp_path):
        path = tmp_path / "lib.rs"
        path.write_text("fn f() { unsafe { a(b(), c()); } d(); }\nimpl X { fn m(&self) {} }\n")
        parser = RustParser()
        assert find_unsafe_in_file(path, parser=parser) == find_unsafe_in_file(path, parser=parser)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileReadError) as exc_info:
            find_unsafe_in_file(tmp_path / "missing.rs")
        assert exc_info.value.filepath == tmp_path / "missing.rs"

    def test_invalid_utf8(self, tmp_path):
        path = tmp_path / "bad.rs"
        path.write_bytes(b"fn f() {}\n// \xff\xfe\n")
        with pytest.raises(EncodingScanError) as exc_info:
            find_unsafe_in_file(path)
        assert exc_info.value.kind == "encoding"

    def test_syntax_error(self, tmp_path):
        path = tmp_path / "broken.rs"
        path.write_text("fn (\n")
        with pytest.raises(SyntaxScanError) as exc_info:
            find_unsafe_in_file(path)
        assert "syntax error at line" in exc_info.value.reason
        assert isinstance(exc_info.value, ScanFileError)


class TestFirstErrorPosition:
    def test_valid_source_has_no_error(self):
        tree = RustParser().parse(b"fn f() {}\n")
        assert first_error_position(tree.root_node) is None

    def test_error_reported_one_based(self):
        tree = RustParser().parse(b"fn ok() {}\nfn (\n")
        position = first_error_position(tree.root_node)
        assert position is not None
        assert position[0] >= 1 and position[1] >= 1
