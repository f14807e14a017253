# tests/test_runner.py
"""
End-to-end tests for the ``coke`` task runner against real Cokefiles.
"""

import os
import textwrap

import pytest

from coke.errors import FatalError
from coke.runner import main, run, split_manifest_flag
from tests.conftest import make_console

COKEFILE = textwrap.dedent('''
    option("release", "build without debug output")
    option("target", ("output directory", "DIR", "build"))

    task("build", "compile everything",
         lambda options: say(f"build release={options.release} target={options.target}"))

    @task("build-docs", "render the manual")
    def build_docs(options):
        invoke("build")
        say("docs in " + os.path.basename(os.getcwd()))

    import os
''')


@pytest.fixture
def project(in_tmp):
    (in_tmp / "Cokefile").write_text(COKEFILE)
    sub = in_tmp / "src" / "deep"
    sub.mkdir(parents=True)
    os.chdir(sub)
    return in_tmp


class TestSplitManifestFlag:

    def test_short_flag(self):
        assert split_manifest_flag(["-f", "tasks.py", "build"]) == ("tasks.py", ["build"])

    def test_long_flag(self):
        assert split_manifest_flag(["--cokefile", "x", "a", "b"]) == ("x", ["a", "b"])

    def test_only_recognized_first(self, monkeypatch):
        monkeypatch.delenv("COKEFILE", raising=False)
        assert split_manifest_flag(["build", "-f", "x"]) == (
            "Cokefile", ["build", "-f", "x"],
        )

    def test_environment_fallback(self, monkeypatch):
        monkeypatch.setenv("COKEFILE", "Tasks")
        assert split_manifest_flag(["build"]) == ("Tasks", ["build"])


class TestListing:

    def test_no_arguments_lists_tasks_and_options(self, project, monkeypatch):
        monkeypatch.delenv("COKEFILE", raising=False)
        console = make_console()
        assert run([], console) == 0
        out = console.out.getvalue()
        assert out.startswith(
            "Usage: coke [coke options] [task options] [tasks]\n\nTasks:\n"
            "  build       compile everything\n"
            "  build-docs  render the manual\n"
        )
        assert "\nTask options:\n" in out
        assert "-r, --release" in out
        assert "-t, --target DIR" in out
        assert out.endswith("-f, --cokefile FILE  use FILE as the Cokefile\n")


class TestInvocation:

    def test_tasks_run_in_order_with_options(self, project, monkeypatch):
        monkeypatch.delenv("COKEFILE", raising=False)
        console = make_console()
        run(["-r", "build", "build-docs"], console)
        assert console.out.getvalue() == (
            "build release=True target=build\n"
            "build release=True target=build\n"
            f"docs in {project.name}\n"
        )

    def test_alias(self, project, monkeypatch):
        monkeypatch.delenv("COKEFILE", raising=False)
        console = make_console()
        run(["--target", "out", "bd"], console)
        assert console.out.getvalue().splitlines()[0] == (
            "build release=False target=out"
        )

    def test_runs_in_manifest_directory(self, project, monkeypatch):
        monkeypatch.delenv("COKEFILE", raising=False)
        run(["build"], make_console())
        assert os.getcwd() == str(project)

    def test_unknown_task(self, project, monkeypatch):
        monkeypatch.delenv("COKEFILE", raising=False)
        with pytest.raises(FatalError, match='no such task: "deploy"'):
            run(["deploy"], make_console())

    def test_task_errors_propagate(self, in_tmp, monkeypatch):
        monkeypatch.delenv("COKEFILE", raising=False)
        (in_tmp / "Cokefile").write_text(
            "def fail(options):\n    raise RuntimeError('broken')\n"
            "task('fail', fail)\n"
        )
        with pytest.raises(RuntimeError, match="broken"):
            run(["fail"], make_console())


class TestManifestSelection:

    def test_flag_selects_other_file(self, project):
        (project / "tasks.py").write_text("task('hello', lambda o: say('hi'))\n")
        console = make_console()
        run(["-f", "tasks.py", "hello"], console)
        assert console.out.getvalue() == "hi\n"

    def test_environment_selects_other_file(self, project, monkeypatch):
        (project / "Other").write_text("task('x', 'the x', lambda o: say('x ran'))\n")
        monkeypatch.setenv("COKEFILE", "Other")
        console = make_console()
        run(["x"], console)
        assert console.out.getvalue() == "x ran\n"


class TestMain:

    def test_missing_manifest_exits_1(self, in_tmp, monkeypatch, capsys):
        monkeypatch.setenv("COKEFILE", "no-such-manifest-91b4e0")
        assert main([]) == 1
        assert 'no "no-such-manifest-91b4e0"' in capsys.readouterr().err

    def test_unknown_task_exits_1(self, project, monkeypatch, capsys):
        monkeypatch.delenv("COKEFILE", raising=False)
        assert main(["nope"]) == 1
        assert 'no such task: "nope"' in capsys.readouterr().err

    def test_success(self, project, monkeypatch, capsys):
        monkeypatch.delenv("COKEFILE", raising=False)
        assert main(["build"]) == 0
        assert capsys.readouterr().out == "build release=False target=build\n"
