import json
import os

import pytest

from catalogsync.cli import _exit_code_from_counts, _summarize_counts, main

ITEM = {
    "id": "p-1",
    "key": "shirt",
    "name": {"en": "Shirt"},
    "slug": {"en": "shirt"},
    "masterVariant": {
        "id": 1,
        "key": "m",
        "sku": "m-sku",
        "attributes": [{"name": "color", "value": "red"}],
        "prices": [{"id": "pr-1", "value": {"currencyCode": "EUR", "centAmount": 1000}}],
    },
}

DRAFT = {
    "key": "shirt",
    "name": {"en": "Shirt v2"},
    "slug": {"en": "shirt"},
    "masterVariant": {
        "key": "m",
        "sku": "m-sku",
        "attributes": [{"name": "color", "value": "blue"}],
        "prices": [{"value": {"currencyCode": "EUR", "centAmount": 1000}}],
    },
}


@pytest.fixture(autouse=True)
def workdir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    for key in list(os.environ):
        if key.startswith("CSYNC_"):
            monkeypatch.delenv(key)
    return tmp_path


def _dump(path, data):
    path.write_text(json.dumps(data), encoding="utf-8")
    return str(path)


def _metadata(tmp_path):
    path = tmp_path / "shirt-type.yml"
    path.write_text("attributes:\n  - name: color\n    attributeConstraint: SameForAll\n", encoding="utf-8")
    return str(path)


def _diff_args(tmp_path, *extra):
    return [
        "diff",
        "--old", _dump(tmp_path / "old.json", ITEM),
        "--new", _dump(tmp_path / "new.json", DRAFT),
        "--logs-dir", str(tmp_path / "logs"),
        *extra,
    ]


def test_diff_prints_actions_as_json(tmp_path, capsys):
    code = main(_diff_args(tmp_path, "--metadata", _metadata(tmp_path)))
    assert code == 0
    actions = json.loads(capsys.readouterr().out)
    assert actions == [
        {"action": "setAttributeInAllVariants", "name": "color", "value": "blue"},
        {"action": "changeName", "name": {"en": "Shirt v2"}},
    ]


def test_diff_only_selected_groups(tmp_path, capsys):
    code = main(_diff_args(tmp_path, "--only", "prices", "sku"))
    assert code == 0
    assert json.loads(capsys.readouterr().out) == []


def test_diff_errors_fail_only_when_asked(tmp_path, capsys):
    # no metadata: the attribute cannot be diffed
    assert main(_diff_args(tmp_path)) == 0
    actions = json.loads(capsys.readouterr().out)
    assert actions == [{"action": "changeName", "name": {"en": "Shirt v2"}}]

    assert main(_diff_args(tmp_path, "--fail-on-error")) == 2


def test_diff_missing_input_file(tmp_path, capsys):
    code = main(["diff", "--old", str(tmp_path / "nope.json"), "--new", str(tmp_path / "nope.json"),
                 "--logs-dir", str(tmp_path / "logs")])
    assert code == 2
    assert capsys.readouterr().out == ""


def test_unknown_group_is_a_config_error(tmp_path, capsys):
    code = main(_diff_args(tmp_path, "--exclude", "colours"))
    assert code == 2
    assert "unknown action group" in capsys.readouterr().err


def test_plan_prints_per_item_lines_and_summary(tmp_path, capsys):
    other = dict(DRAFT, key="trousers")
    keyless = dict(DRAFT, key="")
    old = _dump(tmp_path / "items.json", {"results": [ITEM]})
    new = _dump(tmp_path / "drafts.json", [DRAFT, other, keyless, None])

    code = main(["plan", "--old", old, "--new", new, "--logs-dir", str(tmp_path / "logs"),
                 "--metadata", _metadata(tmp_path)])
    assert code == 0
    lines = capsys.readouterr().out.strip().splitlines()
    assert lines[0] == "0\tshirt\tUPDATED\t2 actions"
    assert lines[1].startswith("1\ttrousers\tCREATED")
    assert lines[-1] == "CREATED=1 | UPDATED=1 | UNCHANGED=0 | SKIP=2 | ERROR=0 | EXCEPTION=0"


def test_plan_reads_yaml_inputs(tmp_path, capsys):
    old = tmp_path / "items.yml"
    old.write_text(
        "- id: p-1\n  key: shirt\n  name: {en: Shirt}\n  slug: {en: shirt}\n"
        "  masterVariant: {id: 1, key: m, sku: m-sku}\n",
        encoding="utf-8",
    )
    new = tmp_path / "drafts.yml"
    new.write_text(
        "- key: shirt\n  name: {en: Shirt}\n  slug: {en: shirt}\n  masterVariant: {key: m, sku: m-sku}\n",
        encoding="utf-8",
    )
    code = main(["plan", "--old", str(old), "--new", str(new), "--logs-dir", str(tmp_path / "logs")])
    assert code == 0
    assert capsys.readouterr().out.strip().splitlines()[-1].startswith("CREATED=0 | UPDATED=0 | UNCHANGED=1")


def test_counts_helpers():
    assert _summarize_counts({"UPDATED": 2}) == (
        "CREATED=0 | UPDATED=2 | UNCHANGED=0 | SKIP=0 | ERROR=0 | EXCEPTION=0"
    )
    assert _exit_code_from_counts({"UPDATED": 2, "SKIP": 1}) == 0
    assert _exit_code_from_counts({"EXCEPTION": 1}) == 2


def test_plan_skips_malformed_draft_and_runs_the_rest(tmp_path, capsys):
    broken = {"key": "trousers", "masterVariant": {"key": "t", "attributes": [{"value": 1}]}}
    old = _dump(tmp_path / "items.json", [ITEM])
    new = _dump(tmp_path / "drafts.json", [DRAFT, broken])

    code = main(["plan", "--old", old, "--new", new, "--logs-dir", str(tmp_path / "logs"),
                 "--metadata", _metadata(tmp_path)])
    assert code == 0
    lines = capsys.readouterr().out.strip().splitlines()
    assert lines[0] == "0\tshirt\tUPDATED\t2 actions"
    assert lines[1].startswith("1\ttrousers\tSKIP\t")
    assert "'name'" in lines[1]
    assert lines[-1] == "CREATED=0 | UPDATED=1 | UNCHANGED=0 | SKIP=1 | ERROR=0 | EXCEPTION=0"
