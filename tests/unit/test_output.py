"""Unit tests for console progress output."""

from rich.console import Console

from open_tasks.output import ConsoleSink, describe_refs
from open_tasks.workflow import ProgressSink, StringRef


def make_sink(verbose=False):
    console = Console(record=True, width=120)
    return ConsoleSink(console=console, verbose=verbose), console


def test_sink_satisfies_protocol():
    sink, _ = make_sink()
    assert isinstance(sink, ProgressSink)


def test_summary_messages_are_printed():
    sink, console = make_sink()
    sink.write("Stored greeting")

    assert "Stored greeting" in console.export_text()


def test_verbose_messages_need_verbose_sink():
    quiet_sink, quiet_console = make_sink()
    loud_sink, loud_console = make_sink(verbose=True)

    for sink in (quiet_sink, loud_sink):
        sink.write("details", "verbose")
        sink.write("nothing", "quiet")

    assert "details" not in quiet_console.export_text()
    assert "details" in loud_console.export_text()
    assert "nothing" not in loud_console.export_text()


def test_describe_refs():
    refs = [
        StringRef(id="abc", content="x", token="greeting", file_name="g.txt"),
        StringRef(id="def", content="y"),
    ]
    assert describe_refs(refs) == ["greeting -> g.txt", "def"]
