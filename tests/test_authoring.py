from __future__ import annotations

import json

import pytest

from expo_log.authoring import (
    PavilionFileWriter,
    load_input_pavilions,
    merge_drafts,
    prepare_output,
    to_drafts,
    validate_draft,
)
from expo_log.catalog import DraftPavilion, Pavilion, load_pavilions
from expo_log.errors import CatalogError
from expo_log.geo import Point


def test_input_items_become_blank_drafts() -> None:
    items = load_input_pavilions([{"id": "a", "name": "Alpha"}, {"id": "b", "name": "Beta"}])
    drafts = to_drafts(items)
    assert [d.id for d in drafts] == ["a", "b"]
    assert all(d.coordinate is None and d.hitbox_radius is None for d in drafts)


@pytest.mark.parametrize(
    "data",
    [
        {"id": "a", "name": "Alpha"},
        ["a"],
        [{"name": "Alpha"}],
        [{"id": "  ", "name": "Alpha"}],
        [{"id": "a", "name": ""}],
        [{"id": "a", "name": 3}],
    ],
)
def test_bad_input_is_rejected(data) -> None:
    with pytest.raises(CatalogError):
        load_input_pavilions(data)


def test_duplicate_input_ids_are_rejected() -> None:
    items = load_input_pavilions([{"id": "a", "name": "Alpha"}, {"id": "a", "name": "Again"}])
    with pytest.raises(CatalogError):
        to_drafts(items)


def test_validate_draft_ranges() -> None:
    assert validate_draft(DraftPavilion(id="a", name="A"))
    assert validate_draft(DraftPavilion(id="a", name="A", coordinate=Point(0, 1), hitbox_radius=1.0))
    assert not validate_draft(DraftPavilion(id="a", name="A", coordinate=Point(1.2, 0.5)))
    assert not validate_draft(DraftPavilion(id="a", name="A", coordinate=Point(float("nan"), 0.5)))
    assert not validate_draft(DraftPavilion(id="a", name="A", hitbox_radius=-0.1))
    assert not validate_draft(DraftPavilion(id=" ", name="A"))


def test_prepare_output_requires_a_coordinate() -> None:
    with pytest.raises(CatalogError):
        prepare_output(DraftPavilion(id="a", name="A"))

    out = prepare_output(DraftPavilion(id="a", name="A", coordinate=Point(0.5, 0.5), hitbox_radius=None))
    assert out == Pavilion(id="a", name="A", coordinate=Point(0.5, 0.5), hitbox_radius=None)


def test_merge_drafts_resumes_published_coordinates() -> None:
    drafts = [DraftPavilion(id="a", name="A"), DraftPavilion(id="b", name="B")]
    published = [Pavilion(id="a", name="A", coordinate=Point(0.2, 0.3), hitbox_radius=0.04)]
    merged = merge_drafts(drafts, published)
    assert merged[0].coordinate == Point(0.2, 0.3)
    assert merged[0].hitbox_radius == 0.04
    assert merged[1].coordinate is None


def test_writer_merges_by_id_and_backs_up_once(tmp_path) -> None:
    path = tmp_path / "pavilions.json"
    path.write_text(
        json.dumps(
            [
                {"id": "a", "name": "A", "coordinate": {"x": 0.1, "y": 0.1}, "hitboxRadius": None, "extra": 1},
                {"id": "b", "name": "B", "coordinate": {"x": 0.2, "y": 0.2}, "hitboxRadius": None},
            ]
        ),
        encoding="utf-8",
    )
    writer = PavilionFileWriter(path)

    res = writer.save(Pavilion(id="a", name="A", coordinate=Point(0.5, 0.5), hitbox_radius=0.02))
    assert res.success and res.error is None
    backup = tmp_path / "pavilions.bak.json"
    assert backup.exists()
    original = backup.read_text(encoding="utf-8")

    writer.save([Pavilion(id="c", name="C", coordinate=Point(0.9, 0.9))])
    assert backup.read_text(encoding="utf-8") == original

    raw = json.loads(path.read_text(encoding="utf-8"))
    assert [r["id"] for r in raw] == ["a", "b", "c"]
    assert raw[0]["coordinate"] == {"x": 0.5, "y": 0.5}
    assert raw[0]["extra"] == 1
    assert [p.id for p in load_pavilions(path)] == ["a", "b", "c"]


def test_writer_creates_missing_catalog(tmp_path) -> None:
    path = tmp_path / "out" / "pavilions.json"
    res = PavilionFileWriter(path).save(Pavilion(id="a", name="A", coordinate=Point(0.5, 0.5)))
    assert res.success
    assert not (tmp_path / "out" / "pavilions.bak.json").exists()


def test_writer_reports_failures_instead_of_raising(tmp_path) -> None:
    path = tmp_path / "pavilions.json"
    path.write_text("{not json", encoding="utf-8")
    res = PavilionFileWriter(path).save(Pavilion(id="a", name="A", coordinate=Point(0.5, 0.5)))
    assert not res.success
    assert res.error
