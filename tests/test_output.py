"""Tests for output formatting."""

import io
import json

from tagflow.output import (
    _auto_columns,
    _format_value,
    emit,
    emit_error,
    emit_outputs,
    format_outputs,
    write_github_output,
)


class TestKeyValueOutputs:

    def test_format(self):
        lines = format_outputs({'tag_name': 'v1.0.0', 'synced': True, 'prior_commit': None})
        assert lines == ['tag_name=v1.0.0', 'synced=true', 'prior_commit=']

    def test_emit_to_stream(self):
        stream = io.StringIO()
        emit_outputs({'a': '1', 'b': '2'}, stream=stream)
        assert stream.getvalue() == "a=1\nb=2\n"

    def test_github_output_appended(self, tmp_path, monkeypatch):
        path = tmp_path / 'github_output'
        path.write_text("earlier=step\n")
        monkeypatch.setenv('GITHUB_OUTPUT', str(path))
        emit_outputs({'action': 'created'}, stream=io.StringIO())
        assert path.read_text() == "earlier=step\naction=created\n"

    def test_no_github_output(self):
        assert write_github_output({'a': '1'}) is False


class TestEmit:

    def test_jsonl(self, capsys):
        emit([{'tag_name': 'v1.0.0'}, {'tag_name': 'staging'}])
        lines = capsys.readouterr().out.strip().split('\n')
        assert [json.loads(line)['tag_name'] for line in lines] == ['v1.0.0', 'staging']

    def test_table(self, capsys):
        emit([{'tag_name': 'v1.0.0', 'kind': 'version'}], pretty=True)
        out = capsys.readouterr().out
        assert 'tag_name' in out
        assert 'v1.0.0' in out

    def test_empty_table(self, capsys):
        emit([], pretty=True)
        assert "No results found" in capsys.readouterr().out

    def test_error(self, capsys):
        emit_error("Tag exists", type="AlreadyImmutable", context={'exit_code': 2})
        err = json.loads(capsys.readouterr().err)
        assert err == {'error': 'Tag exists', 'type': 'AlreadyImmutable', 'context': {'exit_code': 2}}


class TestHelpers:

    def test_auto_columns_prefers_tag_fields(self):
        rows = [{'commit': 'abc', 'zeta': 1, 'tag_name': 'v1', 'kind': 'version'}]
        assert _auto_columns(rows) == ['tag_name', 'kind', 'commit', 'zeta']

    def test_format_value(self):
        assert _format_value(None) == ''
        assert _format_value(True) == 'Yes'
        assert _format_value(['a', 'b', 'c', 'd']) == 'a, b, c (+1 more)'
        assert _format_value('x' * 60).endswith('...')
