# tests/test_tasks.py
"""
Tests for the task registry: alias derivation, registration forms,
invocation and the usage listing.
"""

import pytest

from coke.errors import FatalError
from coke.tasks import TaskRegistry, derive_alias
from tests.conftest import make_console


class TestDeriveAlias:

    @pytest.mark.parametrize("name, alias", [
        ("build docs", "bd"),
        ("build", "b"),
        ("test:unit", "tu"),
        ("watch-and-build", "wab"),
        ("  spaced  out ", "so"),
        ("build_docs", "b"),
    ])
    def test_first_letters_of_words(self, name, alias):
        assert derive_alias(name) == alias

    def test_no_words(self):
        assert derive_alias("--") == ""


class TestRegister:

    def test_three_argument_form(self):
        reg = TaskRegistry(make_console())
        task = reg.register("build", "compile it", lambda o: None)
        assert task.description == "compile it"
        assert task.alias_key == "b"
        assert reg.tasks["build"] is task

    def test_two_argument_form_takes_action(self):
        reg = TaskRegistry(make_console())
        action = lambda o: "ran"
        task = reg.register("build", action)
        assert task.action is action
        assert task.description == ""

    def test_non_callable_action_rejected(self):
        reg = TaskRegistry(make_console())
        with pytest.raises(TypeError):
            reg.register("build", "desc", "not callable")

    def test_reregistering_replaces(self):
        reg = TaskRegistry(make_console())
        reg.register("build", "old", lambda o: "old")
        reg.register("build", "new", lambda o: "new")
        assert len(reg.tasks) == 1
        assert reg.invoke("build") == "new"

    def test_alias_collision_last_registration_wins(self):
        reg = TaskRegistry(make_console())
        reg.register("build docs", lambda o: "docs")
        reg.register("big data", lambda o: "data")
        assert reg.aliases["bd"] == "big data"
        assert reg.invoke("bd") == "data"


class TestInvoke:

    def test_by_name_and_alias(self):
        reg = TaskRegistry(make_console())
        seen = []
        reg.register("build docs", "", lambda o: seen.append(o))
        reg.invoke("build docs", "opts-1")
        reg.invoke("bd", "opts-2")
        assert seen == ["opts-1", "opts-2"]

    def test_name_takes_priority_over_alias(self):
        reg = TaskRegistry(make_console())
        reg.register("bd", lambda o: "direct")
        reg.register("build docs", lambda o: "aliased")
        assert reg.invoke("bd") == "direct"

    def test_unknown_task_is_fatal(self):
        reg = TaskRegistry(make_console())
        with pytest.raises(FatalError) as info:
            reg.invoke("deploy")
        assert info.value.status == 1
        assert '"deploy"' in str(info.value)

    def test_action_errors_propagate(self):
        reg = TaskRegistry(make_console())

        def explode(options):
            raise ValueError("bad build")

        reg.register("build", explode)
        with pytest.raises(ValueError, match="bad build"):
            reg.invoke("build")

    def test_invoke_all_follows_argument_order(self):
        reg = TaskRegistry(make_console())
        order = []
        reg.register("a", lambda o: order.append("a"))
        reg.register("b", lambda o: order.append("b"))
        reg.invoke_all(["b", "a", "b"])
        assert order == ["b", "a", "b"]


class TestListUsage:

    def test_layout(self):
        console = make_console()
        reg = TaskRegistry(console)
        reg.register("zeta", "last letter", lambda o: None)
        reg.register("build docs", "make the docs", lambda o: None)
        reg.list_usage()
        lines = console.out.getvalue().splitlines()
        assert lines[0] == "Usage: coke [coke options] [task options] [tasks]"
        assert lines[2] == "Tasks:"
        # registration order, padded to the longest name
        assert lines[3] == "  zeta        last letter"
        assert lines[4] == "  build docs  make the docs"
        assert "Task options:" not in console.out.getvalue()
        assert lines[-1] == "  -f, --cokefile FILE  use FILE as the Cokefile"

    def test_flag_help_block(self):
        console = make_console()
        reg = TaskRegistry(console)
        reg.register("build", "b", lambda o: None)
        reg.list_usage("  -r, --release  ship it")
        text = console.out.getvalue()
        assert "\nTask options:\n  -r, --release  ship it\n" in text
        assert text.index("Task options:") < text.index("Coke options:")
