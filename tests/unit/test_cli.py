"""
Unit tests for the planner command-line interface.
"""

import json

import pytest

from planner.adapters.plan_csv import EXPORT_COLUMNS
from planner.cli import main
from tests.fakes import create_catalog, create_sample_plan

HEADER = ",".join(EXPORT_COLUMNS)


@pytest.fixture
def plan_file(tmp_path):
    path = tmp_path / "plan.json"
    path.write_text(create_sample_plan().model_dump_json(), encoding="utf-8")
    return path


@pytest.fixture
def catalog_file(tmp_path):
    path = tmp_path / "catalog.json"
    path.write_text(
        json.dumps({"exercises": [e.model_dump() for e in create_catalog()]}),
        encoding="utf-8",
    )
    return path


@pytest.mark.unit
class TestExportCommand:
    """Tests for `export`."""

    def test_export_to_stdout(self, plan_file, capsys):
        main(["export", str(plan_file)])

        lines = capsys.readouterr().out.strip().split("\n")
        assert lines[0] == HEADER
        assert lines[1].startswith("Hypertrophy,Lower A,A1,Back Squat")

    def test_export_to_file(self, plan_file, tmp_path):
        output = tmp_path / "plan.csv"

        main(["export", str(plan_file), "-o", str(output)])

        assert output.read_text(encoding="utf-8").startswith(HEADER)

    def test_missing_file(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["export", str(tmp_path / "nope.json")])

        assert exc_info.value.code == 1
        assert "File not found" in capsys.readouterr().err


@pytest.mark.unit
class TestImportCommand:
    """Tests for `import`."""

    def test_import_with_catalog(self, tmp_path, catalog_file, capsys):
        csv_path = tmp_path / "plan.csv"
        csv_path.write_text(HEADER + "\nBase,Day 1,A1,Back Squat,3,5,8,12,3 0 1 0,45,60,", encoding="utf-8")

        main(["import", str(csv_path), "-c", str(catalog_file)])

        data = json.loads(capsys.readouterr().out)
        exercise = data["phases"][0]["sessions"][0]["exercises"][0]
        assert exercise["exercise_catalog_id"] == "ex-squat"

    def test_unresolved_rows_warn(self, tmp_path, catalog_file, capsys):
        csv_path = tmp_path / "plan.csv"
        csv_path.write_text(HEADER + "\nBase,Day 1,A1,Bak Squatt,,,,,,,,", encoding="utf-8")

        main(["import", str(csv_path), "-c", str(catalog_file)])

        err = capsys.readouterr().err
        assert "line 2" in err
        assert "Back Squat" in err

    def test_strict_exits_2(self, tmp_path, capsys):
        csv_path = tmp_path / "plan.csv"
        csv_path.write_text(HEADER + "\nBase,Day 1,A1,Anything,,,,,,,,", encoding="utf-8")

        with pytest.raises(SystemExit) as exc_info:
            main(["import", str(csv_path), "--strict"])

        assert exc_info.value.code == 2

    def test_bad_header(self, tmp_path, capsys):
        csv_path = tmp_path / "plan.csv"
        csv_path.write_text("Phase Name,Session Name\nBase,Day 1", encoding="utf-8")

        with pytest.raises(SystemExit) as exc_info:
            main(["import", str(csv_path)])

        assert exc_info.value.code == 1
        assert "Invalid CSV format" in capsys.readouterr().err


@pytest.mark.unit
class TestEncodeOrderCommand:
    """Tests for `encode-order`."""

    def test_prints_sort_keys(self, capsys):
        main(["encode-order", "A1", "B2", "C12"])

        assert capsys.readouterr().out.split("\n")[:3] == ["A1\t1", "B2\t102", "C12\t212"]
