# tests/test_driver.py
"""
Tests for the ``coco`` command: flag handling and mode dispatch.
"""

import io

import pytest

from coke import __version__, driver
from coke.driver import main, run
from coke.engine import Engine
from coke.errors import FatalError
from tests.conftest import RecordingEngine, make_console


class _TtyInput(io.StringIO):

    def isatty(self):
        return True


def _run(argv, engine=None, stdin=""):
    console = make_console()
    status = run(argv, engine=engine or Engine(), console=console,
                 stdin=stdin if not isinstance(stdin, str) else io.StringIO(stdin))
    return status, console.out.getvalue(), console.err.getvalue()


class TestInformational:

    def test_version(self):
        status, out, _ = _run(["-v"])
        assert status == 0
        assert out == f"Coco {__version__}\n"

    def test_help(self):
        status, out, _ = _run(["--help"])
        assert status == 0
        assert out.startswith("Usage: coco [options] [files] [arguments]\n\nOptions:\n")
        assert "  -c, --compile" in out
        assert "--python ARGS+" in out
        assert "submit each entry with three blank lines" in out

    def test_unknown_flag_is_fatal_with_help(self):
        with pytest.raises(FatalError) as info:
            _run(["--frobnicate", "-x"])
        message = str(info.value)
        assert message.startswith("Unrecognized option(s): --frobnicate -x\n\n")
        assert "Usage: coco" in message

    def test_main_reports_fatal_errors(self, capsys):
        assert main(["--frobnicate"]) == 1
        assert "Unrecognized option(s): --frobnicate" in capsys.readouterr().err

    def test_main_success(self, capsys):
        assert main(["--version"]) == 0
        assert capsys.readouterr().out == f"Coco {__version__}\n"


class TestEval:

    def test_run_and_print(self):
        status, out, _ = _run(["-pe", "(+ 1 2)"])
        assert status == 0
        assert out == "3\n"

    def test_compile_joins_arguments_with_newlines(self):
        engine = RecordingEngine()
        seen = []
        engine.on("lex", lambda ctx: seen.append(ctx.input))
        _run(["-c", "-e", "(def x 1)", "(print x)"], engine=engine)
        assert seen == ["(def x 1)\n(print x)"]

    def test_run_mode_uses_first_argument_only(self, capsys):
        _run(["-e", "(import sys) (print (. sys argv))", "a", "b"])
        assert capsys.readouterr().out == "['eval', 'a', 'b']\n"

    def test_json(self):
        status, out, _ = _run(["-je", "(dict \"a\" (list 1 2))"])
        assert out == '{\n  "a": [\n    1,\n    2\n  ]\n}\n'

    def test_runtime_error_is_fatal(self):
        with pytest.raises(FatalError, match="ZeroDivisionError"):
            _run(["-e", "(/ 1 0)"])

    def test_token_dump(self):
        _, out, _ = _run(["--tokens", "-e", "(print 1)"])
        assert out == "( SYMBOL:print NUMBER:1 )\n"

    def test_lex_dump_keeps_comments(self):
        _, out, _ = _run(["-l", "-e", "1 ; one"])
        assert out == "NUMBER:1 COMMENT:; one\n"


class TestStdin:

    def test_stdin_flag(self, capsys):
        status, _, _ = _run(["-s", "x", "y"],
                            stdin="(import sys) (print (. sys argv))")
        assert status == 0
        assert capsys.readouterr().out == "['stdin', 'x', 'y']\n"

    def test_no_arguments_and_piped_stdin(self):
        _, out, _ = _run(["-c", "-b"], stdin="(def x 1)")
        assert out == "x = 1\n"

    def test_no_arguments_on_tty_starts_repl(self):
        status, out, _ = _run([], stdin=_TtyInput(""))
        assert status == 0
        assert out.startswith(f"Coco {__version__}\nUsage: coco")
        assert out.rstrip().endswith("coco>")


class TestFiles:

    def test_run_script_with_arguments(self, in_tmp, capsys):
        (in_tmp / "hello.co").write_text(
            "(import sys)\n(print \"hello\" (. sys argv))\n"
        )
        status, _, _ = _run(["hello", "one", "two"])
        assert status == 0
        assert capsys.readouterr().out == "hello ['hello.co', 'one', 'two']\n"

    def test_compile_tree_into_output_dir(self, in_tmp):
        (in_tmp / "src" / "lib").mkdir(parents=True)
        (in_tmp / "src" / "main.co").write_text("(def x 1)\n")
        (in_tmp / "src" / "lib" / "util.co").write_text("(defn inc (n) (+ n 1))\n")
        status, _, _ = _run(["-o", "build", "src"])
        assert status == 0
        main_py = (in_tmp / "build" / "main.py").read_text()
        util_py = (in_tmp / "build" / "lib" / "util.py").read_text()
        assert main_py.startswith("def __module__():")
        assert "def inc(n):" in util_py
        namespace = {}
        exec(util_py, namespace)
        assert namespace["__result__"](4) == 5

    def test_dotted_directory_argument_keeps_layout(self, in_tmp):
        (in_tmp / "src" / "a").mkdir(parents=True)
        (in_tmp / "src" / "a" / "b.co").write_text("(def x 1)\n")
        _run(["-c", "-o", "out", "./src"])
        assert (in_tmp / "out" / "a" / "b.py").is_file()
        assert not (in_tmp / "out" / "rc").exists()

    def test_missing_file(self, in_tmp):
        with pytest.raises(FatalError, match="Can't find: nothing.co"):
            _run(["-c", "nothing"])

    def test_compile_failure_names_the_file(self, in_tmp):
        (in_tmp / "bad.co").write_text("(def x")
        with pytest.raises(FatalError) as info:
            _run(["-c", "bad.co"])
        assert str(info.value) == "Parse error on line 1: missing ) for the form opened here"


class TestRequire:

    def test_require_script_path(self, in_tmp, capsys):
        (in_tmp / "setup_env.py").write_text("print('required')\n")
        _run(["-r", "setup_env.py", "-e", "nil"])
        assert capsys.readouterr().out == "required\n"

    def test_require_module(self):
        _run(["-r", "json", "-e", "nil"])

    def test_require_missing_module(self):
        with pytest.raises(FatalError, match="can't require no_such_module_xyz"):
            _run(["-r", "no_such_module_xyz", "-e", "nil"])


class TestForkFlag:

    def test_python_flag_forks(self, monkeypatch):
        calls = []
        monkeypatch.setattr(driver, "fork",
                            lambda argv, values: calls.append((argv, values)) or 5)
        status = run(["--python=-O", "a.co"], console=make_console(),
                     prog_path="coco")
        assert status == 5
        assert calls == [(["coco", "--python=-O", "a.co"], ["-O"])]
