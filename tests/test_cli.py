"""
FNF Chart Info - CLI Tests

Tests for scripts/chart_info.py. Validates:
- Text report for a single chart
- Chart + metadata pairs and the --wiki template
- --multiplier and --keys
- --json output
- Error exit codes for bad files
"""

import json

from scripts.chart_info import main, process
from tests.conftest import write_json


class TestProcess:
    def test_single_chart(self, tmp_path, psych_v1_chart):
        path = write_json(tmp_path / "bopeebo.json", psych_v1_chart)
        update = process([path])
        assert update.summary.total_notes == 5
        assert update.session.multiplier == 350

    def test_multiplier_applied_after_load(self, tmp_path, codename_chart):
        path = write_json(tmp_path / "chart.json", codename_chart)
        update = process([path], multiplier="100")
        assert update.session.multiplier == 100
        assert update.summary.per_difficulty[None].max_score == 400


class TestMain:
    def test_text_report(self, tmp_path, capsys, psych_v1_chart):
        path = write_json(tmp_path / "bopeebo.json", psych_v1_chart)
        assert main([str(path)]) == 0
        out = capsys.readouterr().out
        assert "Chart Information" in out
        assert "Max Score: 1750" in out
        assert "{{SongInfo" not in out

    def test_pair_with_wiki(self, tmp_path, capsys, vslice_chart, vslice_metadata):
        chart = write_json(tmp_path / "bopeebo-chart.json", vslice_chart)
        meta = write_json(tmp_path / "bopeebo-metadata.json", vslice_metadata)
        assert main([str(meta), str(chart), "--wiki"]) == 0
        out = capsys.readouterr().out
        assert "Artist: Kawai Sprite" in out
        assert "{{SongInfo" in out
        assert "| composer = Kawai Sprite" in out

    def test_json_output(self, tmp_path, capsys, vslice_chart):
        path = write_json(tmp_path / "chart.json", vslice_chart)
        assert main([str(path), "--json", "--keys", "8", "-m", "10"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["session"]["key_count"] == 8
        assert data["session"]["multiplier"] == 10
        assert data["summary"]["engine"] == "vslice"
        assert data["wiki"].startswith("{{SongInfo")

    def test_unrecognized_file(self, tmp_path, capsys):
        path = write_json(tmp_path / "x.json", {"foo": "bar"})
        assert main([str(path)]) == 1
        assert capsys.readouterr().out.startswith("❌")

    def test_missing_file(self, tmp_path, capsys):
        assert main([str(tmp_path / "missing.json")]) == 1
        assert "missing.json" in capsys.readouterr().out

    def test_wrong_extension(self, tmp_path, capsys):
        path = tmp_path / "notes.txt"
        path.write_text("{}", encoding="utf-8")
        assert main([str(path)]) == 1
        assert "Invalid file type" in capsys.readouterr().out

    def test_invalid_json(self, tmp_path, capsys):
        path = tmp_path / "broken.json"
        path.write_text("{nope", encoding="utf-8")
        assert main([str(path)]) == 1
        assert "broken.json" in capsys.readouterr().out

    def test_invalid_multiplier(self, tmp_path, capsys, psych_v1_chart):
        path = write_json(tmp_path / "chart.json", psych_v1_chart)
        assert main([str(path), "-m", "-3"]) == 1
