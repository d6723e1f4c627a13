"""
Tests for the line preprocessor.

These tests verify:
    - Lines outside conditionals pass through untouched
    - #if / #elif / #else / #endif select exactly one branch
    - One comment layer is stripped inside active branches
    - #expand, #include and #error act only in active regions
    - Every malformed directive sequence fails with its own error
"""

import os

import pytest
from buildpp import preprocessor
from buildpp.errors import (
    ElifAfterElseError,
    EmptyExpressionError,
    EvaluationError,
    IncludeNotFoundError,
    UnbalancedDirectiveError,
    UnmatchedElifError,
    UnmatchedElseError,
    UnmatchedEndifError,
    UserDirectiveError,
)
from buildpp.model import BranchState, Directive
from buildpp.preprocessor import (
    LinePreprocessor,
    ROOT_DIR,
    expand_variables,
    preprocess,
    resolve_include,
)


def write(path, text):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def run(tmp_path, text, defines=None, name="input.js", root=None):
    """Preprocess `text` and return the produced lines."""
    source = write(tmp_path / name, text)
    out = []
    preprocess(str(source), out.append, defines or {}, root=root)
    return out


DEBUG_SOURCE = (
    "//#if DEBUG\n"
    "// console.log('on');\n"
    "//#else\n"
    "console.log('off');\n"
    "//#endif\n"
)


class TestPassThrough:

    def test_no_directives_is_identical(self, tmp_path):
        text = "var a = 1;\n\n  // just a comment\nfunction f() {}\n"
        source = write(tmp_path / "in.js", text)
        target = tmp_path / "out.js"
        preprocess(str(source), str(target), {})
        assert target.read_text(encoding="utf-8") == text

    def test_missing_final_newline_is_added(self, tmp_path):
        source = write(tmp_path / "in.js", "a\nb")
        target = tmp_path / "out.js"
        preprocess(str(source), str(target), {})
        assert target.read_text(encoding="utf-8") == "a\nb\n"

    def test_empty_file(self, tmp_path):
        assert run(tmp_path, "") == []

    def test_missing_input_propagates(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            preprocess(str(tmp_path / "nope.js"), [].append, {})


class TestConditionals:
    """Branch selection and comment stripping."""

    def test_debug_true(self, tmp_path):
        assert run(tmp_path, DEBUG_SOURCE, {"DEBUG": True}) == ["   console.log('on');"]

    def test_debug_false(self, tmp_path):
        assert run(tmp_path, DEBUG_SOURCE, {"DEBUG": False}) == ["console.log('off');"]

    def test_lines_around_conditional_kept(self, tmp_path):
        text = "before\n//#if A\n//inside\n//#endif\nafter\n"
        assert run(tmp_path, text, {"A": True}) == ["before", "  inside", "after"]
        assert run(tmp_path, text, {"A": False}) == ["before", "after"]

    @pytest.mark.parametrize("mode, expected", [
        ("generic", ["//g"]),
        ("chrome", ["//c"]),
        ("firefox", ["//other"]),
    ])
    def test_elif_chain_selects_one_branch(self, tmp_path, mode, expected):
        text = (
            "//#if MODE == 'generic'\n"
            "////g\n"
            "//#elif MODE == 'chrome'\n"
            "////c\n"
            "//#else\n"
            "////other\n"
            "//#endif\n"
        )
        assert [l.strip() for l in run(tmp_path, text, {"MODE": mode})] == expected

    def test_elif_after_true_branch_is_not_evaluated(self, tmp_path):
        """A fired branch makes later conditions irrelevant, even undefined ones."""
        text = "//#if true\n//a\n//#elif UNDEFINED_NAME\n//b\n//#endif\n"
        assert run(tmp_path, text) == ["  a"]

    def test_nested_inside_false_branch_is_dropped(self, tmp_path):
        text = (
            "//#if OUTER\n"
            "//#if INNER\n"
            "//inner\n"
            "//#endif\n"
            "//#endif\n"
            "tail\n"
        )
        assert run(tmp_path, text, {"OUTER": False, "INNER": True}) == ["tail"]
        assert run(tmp_path, text, {"OUTER": True, "INNER": True}) == ["  inner", "tail"]

    def test_nested_inside_false_branch_then_else(self, tmp_path):
        text = (
            "//#if A\n"
            "//#if B\n"
            "//ab\n"
            "//#endif\n"
            "//#else\n"
            "//#if B\n"
            "//notab\n"
            "//#endif\n"
            "//#endif\n"
        )
        assert run(tmp_path, text, {"A": False, "B": True}) == ["  notab"]

    def test_html_comment_branch(self, tmp_path):
        text = (
            "<!--#if GENERIC-->\n"
            "<!--<script src=\"debugger.js\"></script>-->\n"
            "<!--#endif-->\n"
        )
        assert run(tmp_path, text, {"GENERIC": True}) == ['  <script src="debugger.js"></script>']
        assert run(tmp_path, text, {"GENERIC": False}) == []

    def test_uncommented_line_in_true_branch(self, tmp_path):
        assert run(tmp_path, "//#if true\nplain();\n//#endif\n") == ["plain();"]


class TestStackDepth:
    """The stack holds one entry per open #if."""

    def test_depth_tracks_nesting(self, tmp_path):
        lp = LinePreprocessor(str(tmp_path / "x.js"), [].append, {"A": True, "B": False})
        lp.handle_directive(Directive("if", "A"))
        assert len(lp.stack) == 1
        lp.handle_directive(Directive("if", "B"))
        assert len(lp.stack) == 2
        assert lp.state == BranchState.IF_FALSE
        lp.handle_directive(Directive("elif", "A"))
        assert len(lp.stack) == 2
        assert lp.state == BranchState.IF_TRUE
        lp.handle_directive(Directive("else"))
        assert lp.state == BranchState.ELSE_FALSE
        lp.handle_directive(Directive("endif"))
        assert len(lp.stack) == 1
        assert lp.state == BranchState.IF_TRUE
        lp.handle_directive(Directive("endif"))
        assert lp.stack == []
        assert lp.state == BranchState.NONE

    def test_false_if_then_else(self, tmp_path):
        lp = LinePreprocessor(str(tmp_path / "x.js"), [].append, {})
        lp.handle_directive(Directive("if", "false"))
        lp.handle_directive(Directive("else"))
        assert lp.state == BranchState.ELSE_TRUE


class TestDirectiveErrors:

    @pytest.mark.parametrize("condition", ["true", "false"])
    def test_elif_after_else(self, tmp_path, condition):
        text = f"//#if false\n//#else\n//#elif {condition}\n//#endif\n"
        with pytest.raises(ElifAfterElseError, match=r"input\.js:3"):
            run(tmp_path, text)

    def test_elif_without_if(self, tmp_path):
        with pytest.raises(UnmatchedElifError):
            run(tmp_path, "//#elif true\n")

    def test_else_without_if(self, tmp_path):
        with pytest.raises(UnmatchedElseError):
            run(tmp_path, "//#else\n")

    def test_second_else(self, tmp_path):
        with pytest.raises(UnmatchedElseError):
            run(tmp_path, "//#if false\n//#else\n//#else\n//#endif\n")

    def test_endif_without_if(self, tmp_path):
        with pytest.raises(UnmatchedEndifError, match=r"input\.js:2"):
            run(tmp_path, "x\n//#endif\n")

    def test_missing_endif(self, tmp_path):
        with pytest.raises(UnbalancedDirectiveError, match="Missing #endif"):
            run(tmp_path, "//#if true\nx\n")

    def test_missing_inner_endif(self, tmp_path):
        with pytest.raises(UnbalancedDirectiveError):
            run(tmp_path, "//#if true\n//#if false\n//#endif\n")

    @pytest.mark.parametrize("line", ["//#if", "//#if   ", "//#elif"])
    def test_empty_condition(self, tmp_path, line):
        text = "//#if false\n" + line + "\n//#endif\n" if "elif" in line else line + "\n//#endif\n"
        with pytest.raises(EmptyExpressionError, match="No expression given"):
            run(tmp_path, text)

    def test_undefined_name_in_condition(self, tmp_path):
        with pytest.raises(EvaluationError) as excinfo:
            run(tmp_path, "//#if TESTING\n//#endif\n")
        message = str(excinfo.value)
        assert 'Could not evaluate "TESTING"' in message
        assert f"{os.path.realpath(tmp_path / 'input.js')}:1" in message
        assert "UndefinedNameError: TESTING is not defined" in message

    def test_syntax_error_in_condition(self, tmp_path):
        with pytest.raises(EvaluationError, match="ExpressionSyntaxError"):
            run(tmp_path, "//#if A &&\n//#endif\n", {"A": True})

    def test_error_directive(self, tmp_path):
        with pytest.raises(UserDirectiveError, match="Found #error unsupported build"):
            run(tmp_path, "//#error unsupported build\n")

    def test_error_directive_in_false_branch(self, tmp_path):
        assert run(tmp_path, "//#if false\n//#error nope\n//#endif\nok\n") == ["ok"]


class TestExpand:

    def test_expand_value(self, tmp_path):
        assert run(tmp_path, "//#expand value = __X__;\n", {"X": "5"}) == ["value = 5;"]

    def test_expand_keeps_trailing_whitespace(self, tmp_path):
        assert run(tmp_path, "//#expand a = __X__;   \n", {"X": 1}) == ["a = 1;   "]

    def test_undefined_expands_to_empty(self, tmp_path):
        assert run(tmp_path, "//#expand a__MISSING__b\n") == ["ab"]

    def test_expand_in_false_branch(self, tmp_path):
        assert run(tmp_path, "//#if false\n//#expand __X__\n//#endif\n", {"X": "5"}) == []

    def test_multiple_tokens(self):
        defines = {"NAME": "pdf.js", "VERSION": "1.2", "DEBUG": False}
        assert expand_variables("__NAME__ v__VERSION__ debug=__DEBUG__", defines) == \
            "pdf.js v1.2 debug=false"

    def test_directive_text_not_reprocessed(self, tmp_path):
        out = run(tmp_path, "//#expand __LINE__\n", {"LINE": "//#if false"})
        assert out == ["//#if false"]


class TestInclude:

    def test_relative_include(self, tmp_path):
        write(tmp_path / "parts" / "part.js", "//#if A\n//partA\n//#endif\npart\n")
        out = run(tmp_path, "start\n//#include parts/part.js\nend\n", {"A": True})
        assert out == ["start", "  partA", "part", "end"]

    def test_include_is_relative_to_including_file(self, tmp_path):
        write(tmp_path / "a" / "b.js", "//#include c.js\n")
        write(tmp_path / "a" / "c.js", "from c\n")
        assert run(tmp_path, "//#include a/b.js\n") == ["from c"]

    def test_include_shares_defines(self, tmp_path):
        write(tmp_path / "v.js", "//#expand version = '__V__';\n")
        assert run(tmp_path, "//#include v.js\n", {"V": "3"}) == ["version = '3';"]

    def test_html_include(self, tmp_path):
        write(tmp_path / "snippet.html", "<p>hi</p>\n")
        assert run(tmp_path, "<!--#include snippet.html-->\n", name="viewer.html") == ["<p>hi</p>"]

    def test_root_include(self, tmp_path):
        root = tmp_path / "root"
        write(root / "foo.txt", "rooted\n")
        out = run(tmp_path, "//#include $ROOT/foo.txt\n", name="deep/down/in.js", root=str(root))
        assert out == ["rooted"]

    def test_include_follows_real_path(self, tmp_path):
        write(tmp_path / "real" / "main.js", "//#include sibling.js\n")
        write(tmp_path / "real" / "sibling.js", "sibling\n")
        link_dir = tmp_path / "elsewhere"
        link_dir.mkdir()
        link = link_dir / "main.js"
        try:
            os.symlink(tmp_path / "real" / "main.js", link)
        except (OSError, NotImplementedError):
            pytest.skip("symlinks not available")
        out = []
        preprocess(str(link), out.append, {})
        assert out == ["sibling"]

    def test_missing_include(self, tmp_path):
        with pytest.raises(IncludeNotFoundError) as excinfo:
            run(tmp_path, "x\n//#include missing.js\n")
        assert 'Failed to include "missing.js"' in str(excinfo.value)
        assert excinfo.value.location.line == 2

    def test_missing_nested_include_reports_inner_file(self, tmp_path):
        write(tmp_path / "outer.js", "//#include gone.js\n")
        with pytest.raises(IncludeNotFoundError) as excinfo:
            run(tmp_path, "//#include outer.js\n")
        assert excinfo.value.location.path == os.path.realpath(tmp_path / "outer.js")

    def test_include_in_false_branch_skipped(self, tmp_path):
        assert run(tmp_path, "//#if false\n//#include missing.js\n//#endif\n") == []

    def test_unbalanced_included_file(self, tmp_path):
        write(tmp_path / "bad.js", "//#if true\n")
        with pytest.raises(UnbalancedDirectiveError, match="bad.js"):
            run(tmp_path, "//#include bad.js\n")

    def test_include_into_file_output(self, tmp_path):
        write(tmp_path / "part.js", "b\n")
        source = write(tmp_path / "main.js", "a\n//#include part.js\nc\n")
        target = tmp_path / "out.js"
        preprocess(str(source), str(target), {})
        assert target.read_text(encoding="utf-8") == "a\nb\nc\n"


class TestResolveInclude:

    def test_root_anchor_default(self):
        module_dir = os.path.dirname(os.path.abspath(preprocessor.__file__))
        assert ROOT_DIR == os.path.normpath(os.path.join(module_dir, "..", ".."))
        assert resolve_include("$ROOT/foo.txt", "/anywhere/x.js") == os.path.join(ROOT_DIR, "foo.txt")

    def test_relative(self, tmp_path):
        including = write(tmp_path / "src" / "x.js", "")
        assert resolve_include("foo.txt", str(including)) == \
            os.path.join(os.path.realpath(tmp_path / "src"), "foo.txt")
