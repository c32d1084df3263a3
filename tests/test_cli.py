"""Tests for the command-line front end."""

import json

import pytest
from typer.testing import CliRunner

from sclx.cli import app, load_tags

runner = CliRunner()


@pytest.fixture
def motor_files(tmp_path):
    code = tmp_path / "motor.scl"
    code.write_text("// interlock\nMotor := Sensor_1 AND NOT Falha;\n", encoding="utf-8")
    tags = tmp_path / "tags.json"
    tags.write_text(json.dumps({
        "Sensor_1": {"value": "TRUE", "data_type": "BOOL"},
        "Falha": {"value": "FALSE", "data_type": "BOOL"},
    }), encoding="utf-8")
    return code, tags


class TestLoadTags:
    def test_object(self, tmp_path):
        path = tmp_path / "tags.json"
        path.write_text('{"Run": {"value": "TRUE", "data_type": "BOOL"}}')
        assert load_tags(path) == {"Run": {"value": "TRUE", "data_type": "BOOL"}}

    def test_list_of_records(self, tmp_path):
        path = tmp_path / "tags.json"
        path.write_text('[{"tag_name": "Run", "value": "TRUE"}, {"name": "Stop", "value": "0"}]')
        tags = load_tags(path)
        assert list(tags) == ["Run", "Stop"]

    def test_record_without_name(self, tmp_path):
        path = tmp_path / "tags.json"
        path.write_text('[{"value": "TRUE"}]')
        with pytest.raises(ValueError, match="without a name"):
            load_tags(path)

    def test_scalar_rejected(self, tmp_path):
        path = tmp_path / "tags.json"
        path.write_text("42")
        with pytest.raises(ValueError, match="JSON object or list"):
            load_tags(path)


class TestAnalyzeCommand:
    def test_text_output(self, motor_files):
        code, tags = motor_files
        result = runner.invoke(app, ["analyze", str(code), "--tags", str(tags)])
        assert result.exit_code == 0
        assert "Tipo: PLAIN" in result.output
        assert "Sensor_1 [BOOL] = TRUE" in result.output
        assert "Motor := Sensor_1 AND NOT Falha → TRUE" in result.output

    def test_json_output(self, motor_files):
        code, tags = motor_files
        result = runner.invoke(app, ["analyze", str(code), "--tags", str(tags), "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["success"] is True
        assert data["classifiedType"] == "PLAIN"
        assert data["assignments"][0] == {
            "variableName": "Motor",
            "value": True,
            "inferredType": "BOOL",
            "sourceExpression": "Sensor_1 AND NOT Falha",
        }
        assert data["statistics"]["commentLines"] == 1

    def test_report_unresolved(self, motor_files):
        code, tags = motor_files
        result = runner.invoke(
            app, ["analyze", str(code), "--tags", str(tags), "--report-unresolved"],
        )
        assert "Motor [UNKNOWN] =  (não encontrada)" in result.output

    def test_stdin(self):
        result = runner.invoke(app, ["analyze", "-"], input="X := 10 / 4;")
        assert result.exit_code == 0
        assert "X := 10 / 4 → 2.50" in result.output

    def test_decimal_places(self):
        result = runner.invoke(app, ["analyze", "-", "--decimal-places", "1"], input="X := 10 / 4;")
        assert "X := 10 / 4 → 2.5" in result.output

    def test_invalid_decimal_places(self):
        result = runner.invoke(app, ["analyze", "-", "--decimal-places", "20"], input="X := 1;")
        assert result.exit_code == 2

    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, ["analyze", str(tmp_path / "nope.scl")])
        assert result.exit_code == 2

    def test_bad_tags_file(self, tmp_path, motor_files):
        code, _ = motor_files
        tags = tmp_path / "bad.json"
        tags.write_text("{not json")
        result = runner.invoke(app, ["analyze", str(code), "--tags", str(tags)])
        assert result.exit_code == 2

    def test_bad_tag_entry(self, tmp_path, motor_files):
        code, _ = motor_files
        tags = tmp_path / "bad.json"
        tags.write_text('{"Run": 1}')
        result = runner.invoke(app, ["analyze", str(code), "--tags", str(tags)])
        assert result.exit_code == 2


class TestClassifyCommand:
    def test_keyword(self, tmp_path):
        path = tmp_path / "loop.scl"
        path.write_text("FOR i := 1 TO 3 DO x := i; END_FOR;")
        result = runner.invoke(app, ["classify", str(path)])
        assert result.exit_code == 0
        assert result.output.strip() == "FOR"

    def test_instruction(self):
        result = runner.invoke(app, ["classify", "-"], input="T1 : TON;\nT1(IN := Run, PT := T#2s);")
        assert result.output.strip() == "TIMER (TON)"
