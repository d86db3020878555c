import io
import logging

import pytest

from todo_cli.db import Database
from todo_cli.keys import encode_key
from todo_cli.main import configure_logging, main


def run_cli(db_path, *args):
    out, err = io.StringIO(), io.StringIO()
    code = main(["--db", str(db_path), *args], stdout=out, stderr=err)
    return code, out.getvalue(), err.getvalue()


class TestScenario:
    def test_add_get_edit_remove_list(self, db_path):
        code, out, _ = run_cli(db_path, "add", "buy", "milk")
        assert code == 0
        assert out == "1) buy milk\nTodo successfully added\n"

        code, out, _ = run_cli(db_path, "get", "1")
        assert code == 0
        assert out == "1)  buy milk\n"

        code, out, _ = run_cli(db_path, "edit", "1", "buy oat milk")
        assert code == 0
        assert out == "Todo successfully edited\n"
        assert run_cli(db_path, "get", "1")[1] == "1)  buy oat milk\n"

        code, out, _ = run_cli(db_path, "remove", "1")
        assert code == 0
        assert out == "Removed, todo - 1\n"

        code, out, _ = run_cli(db_path, "get", "1")
        assert code == 1
        assert out == "Error: todo 1 not found\n"

        code, out, _ = run_cli(db_path, "list")
        assert code == 0
        assert out == "Listing all items\nEnd of list\n"

    def test_list_in_id_order(self, db_path):
        for text in ["a", "b", "c"]:
            run_cli(db_path, "add", text)
        code, out, _ = run_cli(db_path, "list")
        assert code == 0
        assert out == "Listing all items\n1) a\n2) b\n3) c\nEnd of list\n"

    def test_add_empty_text(self, db_path):
        code, out, _ = run_cli(db_path, "add", "")
        assert code == 0
        assert out.splitlines()[0] == "1) "


class TestFailures:
    def test_edit_unknown_id(self, db_path):
        code, out, _ = run_cli(db_path, "edit", "7", "nothing")
        assert code == 1
        assert out == "Error editing todo: todo 7 not found\n"
        # No record was fabricated
        assert run_cli(db_path, "list")[1] == "Listing all items\nEnd of list\n"

    def test_remove_unknown_id_is_not_an_error(self, db_path):
        code, out, _ = run_cli(db_path, "remove", "99")
        assert code == 0
        assert out == "Removed, todo - 99\n"

    def test_list_reports_corrupt_entries(self, db_path):
        for text in ["a", "b", "c"]:
            run_cli(db_path, "add", text)
        with Database(db_path).update() as tx:
            tx.bucket("todos").put(encode_key(2), b"garbage")

        code, out, err = run_cli(db_path, "list")
        assert code == 1
        lines = out.splitlines()
        assert lines[0] == "Listing all items"
        assert lines[1:3] == ["1) a", "3) c"]
        assert lines[3].startswith("error: malformed record 2")
        assert lines[-1] == "End of list"
        assert "skipping corrupt entry" in err

    def test_get_corrupt_entry(self, db_path):
        run_cli(db_path, "add", "a")
        with Database(db_path).update() as tx:
            tx.bucket("todos").put(encode_key(1), b"{}")
        code, out, _ = run_cli(db_path, "get", "1")
        assert code == 1
        assert out.startswith("Error: malformed record 1")

    def test_database_parent_is_a_file(self, tmp_path):
        (tmp_path / "afile").write_text("not a directory")
        code, out, err = run_cli(tmp_path / "afile" / "todo.db", "list")
        assert code == 1
        assert out == ""
        assert err.startswith("todo: error: cannot open")

    def test_unopenable_database(self, tmp_path):
        code, out, err = run_cli(tmp_path, "list")
        assert code == 1
        assert out == ""
        assert err.startswith("todo: error:")


class TestArguments:
    @pytest.mark.parametrize(
        "args",
        [
            ("get", "abc"),
            ("get", "-1"),
            ("remove", "1.5"),
            ("edit", "x", "text"),
            ("get", str(2**64)),
        ],
    )
    def test_invalid_id(self, db_path, args):
        code, out, err = run_cli(db_path, *args)
        assert code == 2
        assert out == ""
        assert "error: id" in err

    @pytest.mark.parametrize("args", [("add", "bad \udcff"), ("edit", "1", "bad", "\udcff")])
    def test_text_that_is_not_utf8(self, db_path, args):
        run_cli(db_path, "add", "original")
        code, out, err = run_cli(db_path, *args)
        assert code == 2
        assert out == ""
        assert "error: text" in err
        assert run_cli(db_path, "get", "1")[1] == "1)  original\n"

    @pytest.mark.parametrize(
        "args",
        [
            ("frobnicate",),
            ("add",),
            ("get",),
            ("edit", "1"),
            ("list", "extra"),
            ("help", "nope"),
        ],
    )
    def test_usage_errors(self, db_path, args):
        code, out, err = run_cli(db_path, *args)
        assert code == 2
        assert out == ""
        assert "usage:" in err
        assert "error:" in err

    def test_invalid_arguments_do_not_touch_the_database(self, tmp_path):
        db_path = tmp_path / "untouched.db"
        code, _, _ = run_cli(db_path, "get", "abc")
        assert code == 2
        assert not db_path.exists()


class TestRootCommand:
    def test_greeting(self, db_path):
        code, out, _ = run_cli(db_path, "--name", "Sam")
        assert code == 0
        assert out == "Hello, root command, I am Sam\n"

    def test_no_command_prints_help(self, db_path):
        code, out, _ = run_cli(db_path)
        assert code == 0
        assert out.startswith("usage: todo")
        for name in ("add", "get", "edit", "remove", "list", "help"):
            assert name in out

    def test_help_for_command(self, db_path):
        code, out, _ = run_cli(db_path, "help", "edit")
        assert code == 0
        assert out.startswith("usage: todo edit")

    def test_db_path_from_environment(self, tmp_path, monkeypatch):
        path = tmp_path / "env.db"
        monkeypatch.setenv("TODO_DB_PATH", str(path))
        out = io.StringIO()
        assert main(["add", "from env"], stdout=out, stderr=io.StringIO()) == 0
        assert path.exists()
        assert out.getvalue().startswith("1) from env")

    def test_verbose_logs_to_stderr(self, db_path):
        code, _, err = run_cli(db_path, "-v", "add", "x")
        assert code == 0
        assert "DEBUG todo_cli" in err


class TestHelpFlags:
    @pytest.mark.parametrize(
        "args, prefix",
        [
            (("-h",), "usage: todo"),
            (("--help",), "usage: todo"),
            (("add", "-h"), "usage: todo add"),
            (("edit", "--help"), "usage: todo edit"),
        ],
    )
    def test_help_goes_to_stdout_stream(self, db_path, args, prefix):
        code, out, err = run_cli(db_path, *args)
        assert code == 0
        assert out.startswith(prefix)
        assert err == ""


class TestLogging:
    def test_handler_is_replaced_not_stacked(self):
        pkg = logging.getLogger("todo_cli")
        configure_logging("INFO", io.StringIO())
        before = len(pkg.handlers)
        second = io.StringIO()
        configure_logging("INFO", second)
        assert len(pkg.handlers) == before
        logging.getLogger("todo_cli.db").info("hello")
        assert "INFO todo_cli.db: hello" in second.getvalue()
