"""
Tests for the history model and JSON Lines ingestion.
"""

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from histcheck.errors import HistoryFormatError
from histcheck.history import (
    FailureClass,
    History,
    MonotonicRow,
    OpKind,
    Operation,
    OpType,
    Transfer,
    load_history,
    parse_int,
    parse_lines,
)


class TestOperation:
    """Tests for Operation model."""

    def test_parse_from_dict(self) -> None:
        """Should coerce string type and f into enums."""
        op = Operation.model_validate({"type": "ok", "f": "add", "value": 3})
        assert op.type is OpType.OK
        assert op.f is OpKind.ADD
        assert op.value == 3
        assert op.is_ok
        assert not op.is_invoke

    def test_operation_is_immutable(self) -> None:
        """Operations are historical facts."""
        op = Operation(type=OpType.INVOKE, f=OpKind.ADD, value=1)
        with pytest.raises(ValidationError):
            op.value = 2  # type: ignore

    def test_unknown_type_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Operation.model_validate({"type": "done", "f": "add"})

    def test_has_error(self) -> None:
        op = Operation(type=OpType.FAIL, f=OpKind.ADD, error="retry")
        assert op.has_error(FailureClass.RETRY)
        assert not op.has_error(FailureClass.ABORT_UNCERTAIN)

    def test_terminal_types(self) -> None:
        assert not OpType.INVOKE.is_terminal
        assert all(t.is_terminal for t in (OpType.OK, OpType.FAIL, OpType.INFO))


class TestValueShapes:
    """Tests for workload value models."""

    def test_row_from_sequence(self) -> None:
        row = MonotonicRow.from_sequence([4, 1000, 2, 3])
        assert (row.value, row.timestamp, row.node, row.partition) == (4, 1000, 2, 3)

    def test_row_pads_short_sequences(self) -> None:
        row = MonotonicRow.from_sequence([4, 1000])
        assert row.node is None
        assert row.partition is None

    def test_row_unparseable_fields_become_none(self) -> None:
        row = MonotonicRow.from_sequence(["4", "NULL", None, True])
        assert row.value == 4
        assert row.timestamp is None
        assert row.node is None
        assert row.partition is None

    def test_row_from_mapping(self) -> None:
        row = MonotonicRow.from_sequence({"value": "4", "timestamp": 1000, "partition": 2})
        assert (row.value, row.timestamp, row.node, row.partition) == (4, 1000, None, 2)

    def test_mapping_unparseable_fields_become_none(self) -> None:
        row = MonotonicRow.from_sequence({"value": "x", "timestamp": 1.5, "node": [1]})
        assert row == MonotonicRow()

    def test_row_from_scalar(self) -> None:
        assert MonotonicRow.from_sequence(7).value == 7

    def test_transfer_aliases(self) -> None:
        t = Transfer.model_validate({"from": 1, "to": 2, "amount": 3})
        assert t.from_account == 1
        assert t.to_account == 2
        assert t.amount == 3


class TestParseInt:
    """Tests for the unparseable-number sentinel."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            (5, 5),
            ("42", 42),
            (" -3 ", -3),
            (2.0, 2),
            (2.5, None),
            ("abc", None),
            ("", None),
            (None, None),
            (True, None),
            ([1], None),
        ],
    )
    def test_parse_int(self, raw: object, expected: int | None) -> None:
        assert parse_int(raw) == expected


class TestHistory:
    """Tests for History projections."""

    @pytest.fixture
    def history(self) -> History:
        return History.from_records(
            [
                {"type": "invoke", "f": "add", "value": 1},
                {"type": "ok", "f": "add", "value": 1},
                {"type": "invoke", "f": "read"},
                {"type": "ok", "f": "read", "value": [1]},
                {"type": "invoke", "f": "add", "value": 2},
                {"type": "fail", "f": "add", "value": 2, "error": "retry"},
                {"type": "invoke", "f": "read"},
                {"type": "ok", "f": "read", "value": [1, 2]},
                {"type": "invoke", "f": "read"},
                {"type": "fail", "f": "read", "error": "timeout"},
            ]
        )

    def test_len_and_iteration(self, history: History) -> None:
        assert len(history) == 10
        assert [op.type for op in history][:2] == [OpType.INVOKE, OpType.OK]

    def test_projections(self, history: History) -> None:
        assert history.values(OpType.INVOKE, OpKind.ADD) == [1, 2]
        assert len(history.oks(OpKind.READ)) == 2
        assert len(history.fails()) == 2
        assert len(history.invokes()) == 5

    def test_final_read_is_last_ok_read(self, history: History) -> None:
        """A failed read after the last OK read does not count."""
        final = history.final_read()
        assert final is not None
        assert final.value == [1, 2]

    def test_final_read_missing(self) -> None:
        history = History.from_records([{"type": "invoke", "f": "read"}])
        assert history.final_read() is None

    def test_slicing_returns_history(self, history: History) -> None:
        head = history[:2]
        assert isinstance(head, History)
        assert len(head) == 2
        assert history[0].is_invoke

    def test_history_is_not_mutable(self, history: History) -> None:
        with pytest.raises(TypeError):
            history[0] = history[1]  # type: ignore[index]

    def test_equality(self, history: History) -> None:
        assert history == History(history.ops)
        assert history != history[:3]


class TestLoader:
    """Tests for JSON Lines ingestion."""

    def test_load_history(self, tmp_path: Path) -> None:
        path = tmp_path / "history.jsonl"
        lines = [
            {"type": "invoke", "f": "add", "value": 0, "process": 1, "time": 10},
            {"type": "ok", "f": "add", "value": 0, "process": 1, "time": 20},
        ]
        path.write_text("\n".join(json.dumps(x) for x in lines) + "\n\n")

        history = load_history(path)

        assert len(history) == 2
        assert history[1].is_ok
        assert history[1].process == 1
        assert history[1].time == 20

    def test_keyword_style_fields(self) -> None:
        """Keywords exported as ':ok' are accepted."""
        history = parse_lines(['{":type": ":ok", ":f": ":read", ":value": [1], ":error": null}'])
        assert history[0].type is OpType.OK
        assert history[0].f is OpKind.READ

    def test_bad_json_names_line(self) -> None:
        with pytest.raises(HistoryFormatError) as exc:
            parse_lines(['{"type": "ok", "f": "add"}', "{not json"])
        assert exc.value.line == 2
        assert "line 2" in str(exc.value)

    def test_non_object_line(self) -> None:
        with pytest.raises(HistoryFormatError) as exc:
            parse_lines(["[1, 2]"])
        assert exc.value.line == 1

    def test_invalid_operation(self) -> None:
        with pytest.raises(HistoryFormatError):
            parse_lines(['{"type": "ok", "f": "delete"}'])
