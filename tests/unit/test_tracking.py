from tracking import t
import json
import os

import tracking
from tracking import call_counts, configure


def test_calls_are_counted():
    t('tests.unit.test_tracking.test_calls_are_counted')
    before = call_counts().get('tests.unit.test_tracking.sample', 0)

    t('tests.unit.test_tracking.sample')
    t('tests.unit.test_tracking.sample')
    t('')

    counts = call_counts()
    assert counts['tests.unit.test_tracking.sample'] == before + 2
    assert '' not in counts


def test_counts_are_written_only_when_a_file_is_configured(tmp_path):
    t('tests.unit.test_tracking.test_counts_are_written_only_when_a_file_is_configured')
    sink = tmp_path / "counts" / "calls.json"
    sink.parent.mkdir()
    sink.write_text(json.dumps({"tests.unit.test_tracking.persisted": 40}), encoding="utf-8")

    try:
        configure(str(sink))
        tracking.t('tests.unit.test_tracking.persisted')
        written = json.loads(sink.read_text(encoding="utf-8"))
        assert written['tests.unit.test_tracking.persisted'] >= 41

        configure(None)
        tracking.t('tests.unit.test_tracking.persisted')
        assert json.loads(sink.read_text(encoding="utf-8")) == written
    finally:
        configure(os.getenv("TRACKING_FILE"))

    assert [path.name for path in sink.parent.iterdir()] == ["calls.json"]
