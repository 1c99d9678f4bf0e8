"""Tests for the review-manager command line (subcommands and menu)."""

import json

import pytest

from review_manager.cli import format_table, main
from review_manager.storage import read_reviews

pytestmark = pytest.mark.usefixtures("clean_env")


def _run(capsys, csv_path, *args, input_fn=None):
    argv = ["--csv", str(csv_path), *args]
    code = main(argv) if input_fn is None else main(argv, input_fn=input_fn)
    return code, json.loads(capsys.readouterr().out)


def _answers(*values):
    it = iter(values)

    def fake_input(prompt):
        try:
            return next(it)
        except StopIteration:
            raise EOFError from None

    return fake_input


def _names(path):
    return [r.reviewer_name for r in read_reviews(path)]


# =============================================================================
# Read-only commands
# =============================================================================


class TestReadCommands:
    def test_list(self, capsys, sample_csv):
        code, out = _run(capsys, sample_csv, "list")
        assert code == 0
        assert [r["number"] for r in out["reviews"]] == [1, 2, 3, 4, 5]
        assert out["statistics"]["average_score"] == 3.8

    def test_list_missing_file_is_empty(self, capsys, tmp_path):
        code, out = _run(capsys, tmp_path / "none.csv", "list")
        assert code == 0
        assert out["reviews"] == []
        assert out["statistics"]["average_score"] is None

    def test_non_utf8_file_exits_with_message(self, tmp_path):
        path = tmp_path / "latin1.csv"
        path.write_bytes(
            b"ReviewerName,SatisfactionScore,ReviewDate,Feedback\n"
            b"Zo\xeb,5,2024-01-15,ok\n"
        )
        with pytest.raises(SystemExit) as exc:
            main(["--csv", str(path), "list"])
        assert str(exc.value.code).startswith("error: cannot read")

    def test_unreadable_path_exits_with_message(self, tmp_path):
        with pytest.raises(SystemExit) as exc:
            main(["--csv", str(tmp_path), "list"])
        assert str(exc.value.code).startswith("error: cannot read")

    def test_show(self, capsys, sample_csv):
        _, out = _run(capsys, sample_csv, "show", "3")
        assert out["review"]["reviewer_name"] == "Charlie"

    def test_show_out_of_range(self, sample_csv):
        with pytest.raises(SystemExit) as exc:
            main(["--csv", str(sample_csv), "show", "9"])
        assert "No review number 9" in str(exc.value.code)

    def test_stats(self, capsys, sample_csv):
        _, out = _run(capsys, sample_csv, "stats")
        assert out["statistics"]["distribution"] == {"1": 0, "2": 1, "3": 1, "4": 1, "5": 2}

    def test_jsonl_output(self, capsys, sample_csv):
        main(["--csv", str(sample_csv), "--jsonl", "stats"])
        assert len(capsys.readouterr().out.strip().splitlines()) == 1


class TestSearch:
    def test_partial(self, capsys, sample_csv):
        _, out = _run(capsys, sample_csv, "search", "LI")
        assert out["mode"] == "partial"
        assert [m["reviewer_name"] for m in out["matches"]] == ["Alice", "Charlie"]
        assert "suggestions" not in out

    def test_fuzzy(self, capsys, sample_csv):
        _, out = _run(capsys, sample_csv, "search", "Charlei", "--fuzzy")
        assert out["max_distance"] == 2
        (m,) = out["matches"]
        assert (m["number"], m["distance"], m["tier"]) == (3, 2, "close")

    def test_fuzzy_uses_env_tolerance(self, capsys, sample_csv, monkeypatch):
        monkeypatch.setenv("REVIEW_MANAGER_MAX_DISTANCE", "0")
        _, out = _run(capsys, sample_csv, "search", "Charlei", "--fuzzy")
        assert out["matches"] == []

    def test_no_match_adds_suggestions(self, capsys, sample_csv):
        _, out = _run(capsys, sample_csv, "search", "Charly")
        assert out["matches"] == []
        assert out["suggestions"][0]["name"] == "Charlie"

    def test_bad_max_distance(self, sample_csv):
        with pytest.raises(SystemExit) as exc:
            main(["--csv", str(sample_csv), "search", "Bob", "--fuzzy", "--max-distance", "-2"])
        assert "max_distance" in str(exc.value.code)

    def test_bad_env_configuration(self, sample_csv, monkeypatch):
        monkeypatch.setenv("REVIEW_MANAGER_MAX_DISTANCE", "lots")
        with pytest.raises(SystemExit) as exc:
            main(["--csv", str(sample_csv), "list"])
        assert "REVIEW_MANAGER_MAX_DISTANCE" in str(exc.value.code)


# =============================================================================
# Mutating commands
# =============================================================================


class TestAddUpdate:
    def test_add(self, capsys, sample_csv):
        code, out = _run(
            capsys,
            sample_csv,
            "add",
            "--name",
            "  Frank ",
            "--score",
            "4",
            "--date",
            "2024-02-01",
            "--feedback",
            "Nice, fast",
        )
        assert code == 0
        assert out["added"]["number"] == 6
        reviews = read_reviews(sample_csv)
        assert reviews[-1].reviewer_name == "Frank"
        assert reviews[-1].feedback == "Nice, fast"

    def test_add_invalid_score(self, sample_csv):
        with pytest.raises(SystemExit) as exc:
            main(["--csv", str(sample_csv), "add", "--name", "F", "--score", "7", "--date", "2024-02-01"])
        assert str(exc.value.code).startswith("error:")
        assert len(read_reviews(sample_csv)) == 5

    def test_add_invalid_date(self, sample_csv):
        with pytest.raises(SystemExit):
            main(["--csv", str(sample_csv), "add", "--name", "F", "--score", "3", "--date", "01/02/2024"])

    def test_update(self, capsys, sample_csv):
        code, out = _run(capsys, sample_csv, "update", "2", "--score", "5", "--name", "Bobby")
        assert code == 0
        assert out["updated"]["satisfaction_score"] == 5
        assert read_reviews(sample_csv)[1].reviewer_name == "Bobby"

    def test_update_nothing(self, sample_csv):
        with pytest.raises(SystemExit):
            main(["--csv", str(sample_csv), "update", "2"])


class TestDelete:
    def test_by_exact_name(self, capsys, sample_csv):
        code, out = _run(capsys, sample_csv, "delete", "--name", "Charlie", "--yes")
        assert code == 0
        assert out["deleted"]["reviewer_name"] == "Charlie"
        assert _names(sample_csv) == ["Alice", "Bob", "David", "Eve"]

    def test_by_number(self, capsys, sample_csv):
        _run(capsys, sample_csv, "delete", "--number", "1", "--yes")
        assert _names(sample_csv)[0] == "Bob"

    def test_typo_without_fuzzy_not_found(self, capsys, sample_csv):
        code, out = _run(capsys, sample_csv, "delete", "--name", "Charlei", "--yes")
        assert code == 1
        assert out["deleted"] is None
        assert len(_names(sample_csv)) == 5

    def test_typo_with_fuzzy(self, capsys, sample_csv):
        code, out = _run(capsys, sample_csv, "delete", "--name", "Charlei", "--fuzzy", "--yes")
        assert code == 0
        assert out["deleted"]["reviewer_name"] == "Charlie"
        assert out["match"] == {"distance": 2, "tier": "close"}

    def test_confirmation_declined(self, capsys, sample_csv):
        code, out = _run(
            capsys, sample_csv, "delete", "--name", "Charlie", input_fn=_answers("n")
        )
        assert code == 1
        assert out["cancelled"] is True
        assert "Charlie" in _names(sample_csv)

    def test_confirmation_accepted(self, capsys, sample_csv):
        code, _ = _run(capsys, sample_csv, "delete", "--name", "Bob", input_fn=_answers("Y"))
        assert code == 0
        assert "Bob" not in _names(sample_csv)

    def test_all_by(self, capsys, sample_csv):
        main(["--csv", str(sample_csv), "add", "--name", "BOB", "--score", "1", "--date", "2024-03-01"])
        capsys.readouterr()

        code, out = _run(capsys, sample_csv, "delete", "--all-by", "bob", "--yes")
        assert code == 0
        assert out["deleted"] == 2
        assert _names(sample_csv) == ["Alice", "Charlie", "David", "Eve"]


class TestBackupRestore:
    def test_backup_then_restore(self, capsys, sample_csv, tmp_path):
        backup = tmp_path / "saved.csv"
        original = sample_csv.read_bytes()

        _, out = _run(capsys, sample_csv, "backup", "--to", str(backup))
        assert out["reviews"] == 5
        assert backup.read_bytes() == original

        _run(capsys, sample_csv, "delete", "--number", "1", "--yes")
        assert len(_names(sample_csv)) == 4

        _, out = _run(capsys, sample_csv, "restore", "--from", str(backup))
        assert out["reviews"] == 5
        assert sample_csv.read_bytes() == original

    def test_default_backup_path(self, capsys, sample_csv):
        _, out = _run(capsys, sample_csv, "backup")
        assert out["backup"].endswith("reviews_backup.csv")

    def test_restore_missing(self, sample_csv, tmp_path):
        with pytest.raises(SystemExit):
            main(["--csv", str(sample_csv), "restore", "--from", str(tmp_path / "no.csv")])

    def test_restore_from_data_file_itself(self, sample_csv):
        original = sample_csv.read_bytes()
        with pytest.raises(SystemExit) as exc:
            main(["--csv", str(sample_csv), "restore", "--from", str(sample_csv)])
        assert str(exc.value.code).startswith("error:")
        assert sample_csv.read_bytes() == original


# =============================================================================
# Interactive menu
# =============================================================================


class TestMenu:
    def test_display_and_exit(self, capsys, sample_csv):
        code = main(["--csv", str(sample_csv), "menu"], input_fn=_answers("2", "6"))
        out = capsys.readouterr().out
        assert code == 0
        assert "Loaded 5 reviews" in out
        assert "Total reviews: 5" in out
        assert "Data saved successfully!" in out

    def test_add_reprompts_bad_score(self, capsys, sample_csv):
        code = main(
            ["--csv", str(sample_csv), "menu"],
            input_fn=_answers("1", "Frank", "9", "4", "2024-02-01", "Nice", "6"),
        )
        out = capsys.readouterr().out
        assert code == 0
        assert "Please enter a score between 1 to 5" in out
        assert read_reviews(sample_csv)[-1].satisfaction_score == 4

    def test_search(self, capsys, sample_csv):
        main(["--csv", str(sample_csv), "menu"], input_fn=_answers("3", "li", "6"))
        out = capsys.readouterr().out
        assert "Alice" in out and "Charlie" in out

    def test_fuzzy_search_fallback(self, capsys, sample_csv):
        main(["--csv", str(sample_csv), "menu"], input_fn=_answers("3", "Charlei", "6"))
        out = capsys.readouterr().out
        assert "Charlie (close, distance 2)" in out

    def test_delete_with_fuzzy_selection(self, capsys, sample_csv):
        code = main(
            ["--csv", str(sample_csv), "menu"],
            input_fn=_answers("4", "Charlei", "1", "y", "6"),
        )
        out = capsys.readouterr().out
        assert code == 0
        assert "Review deleted successfully" in out
        assert "Charlie" not in _names(sample_csv)

    def test_invalid_choice(self, capsys, sample_csv):
        main(["--csv", str(sample_csv), "menu"], input_fn=_answers("9", "6"))
        assert "Invalid choice!" in capsys.readouterr().out

    def test_eof_discards_changes(self, capsys, sample_csv):
        original = sample_csv.read_bytes()
        code = main(
            ["--csv", str(sample_csv), "menu"],
            input_fn=_answers("4", "Alice", "y"),
        )
        assert code == 1
        assert "unsaved changes discarded" in capsys.readouterr().out
        assert sample_csv.read_bytes() == original


class TestFormatting:
    def test_long_feedback_truncated(self, store):
        store.update(0, feedback="x" * 80)
        table = format_table(store)
        assert "x" * 47 + "..." in table
        assert "x" * 48 not in table
