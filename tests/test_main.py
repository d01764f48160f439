import io
import sys
import types

import main


def test_all_checks_pass():
    results = main.run_checks()

    assert len(results) == 26
    failed = [description for description, passed in results if not passed]
    assert failed == []


def test_checks_are_repeatable():
    first = main.run_checks()
    second = main.run_checks()

    assert first == second


def test_report_format():
    stream = io.StringIO()

    failures = main.report(
        [("first check", True), ("second check", False), ("third check", True)],
        stream
    )

    assert failures == 1
    assert stream.getvalue().splitlines() == [
        "1..3",
        "first check",
        "ok 1",
        "second check",
        "not ok 2",
        "third check",
        "ok 3",
    ]


def test_main_reports_to_stdout(monkeypatch, capsys):
    stopped = []

    class Listener:
        def stop(self):
            stopped.append(True)

    monkeypatch.setattr(main, "setup_logging", lambda *args, **kwargs: Listener())
    monkeypatch.setattr(main, "CONFIG_PATH", "does-not-exist.toml")

    assert main.main() == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == "1..26"
    assert lines[-1] == "ok 26"
    assert not any(line.startswith("not ok") for line in lines)
    assert stopped == [True]


def test_configured_factories_are_used(monkeypatch):
    module = types.ModuleType("harness_factories")
    module.built = []

    def build(identity, **arguments):
        module.built.append(identity)
        return object()

    module.build = build
    monkeypatch.setitem(sys.modules, "harness_factories", module)

    results = main.run_checks({
        "Registry": {"factories": {"Base": "harness_factories.build"}}
    })

    assert all(passed for _, passed in results)
    assert module.built == ["Base", "Base"]
