"""
Tests for the saved-page batch runner.
"""
import json

import listing_loader
from listing_loader import ListingLoader, find_saved_pages, load_saved_page

GOOD_PAGE = """
<html><head><title>Vintage Oak Dining Chair | eBay</title></head>
<body>
  <div class="item-specifics"><table><tr><td>Wood</td><td>Oak</td></tr></table></div>
  <div id="desc_div"><p>Solid oak chair, restored and waxed, collection only.</p></div>
  <p>Item number: 2345678901</p>
</body></html>
"""


def _write_pages(directory):
    directory.mkdir()
    (directory / "chair.html").write_text(GOOD_PAGE, encoding="utf-8")
    (directory / "empty.htm").write_text("<html><body></body></html>", encoding="utf-8")
    (directory / "notes.txt").write_text("not a page", encoding="utf-8")
    return directory


def test_find_saved_pages(tmp_path):
    pages = find_saved_pages(_write_pages(tmp_path / "pages"))
    assert [p.name for p in pages] == ["chair.html", "empty.htm"]


def test_load_saved_page_replaces_bad_bytes(tmp_path):
    path = tmp_path / "latin.html"
    path.write_bytes(b"<p>Caf\xe9</p>")
    assert load_saved_page(path) == "<p>Caf�</p>"


def test_process_directory_writes_results(tmp_path):
    pages_dir = _write_pages(tmp_path / "pages")
    results_dir = tmp_path / "results"

    summary = ListingLoader(results_dir=results_dir).process_directory(pages_dir, max_workers=2)

    assert summary["total_pages"] == 2
    assert summary["successful"] == 2
    assert summary["valid"] == 1

    chair = json.loads((results_dir / "chair.json").read_text(encoding="utf-8"))
    assert chair["listing"]["itemId"] == "2345678901"
    assert chair["listing"]["itemSpecifics"] == [{"label": "Wood", "value": "Oak"}]
    assert chair["valid"] is True
    assert len(list(results_dir.glob("batch_summary_*.json"))) == 1


def test_strict_mode_marks_unusable_listings_failed(tmp_path):
    pages_dir = _write_pages(tmp_path / "pages")

    summary = ListingLoader(results_dir=None, strict=True).process_directory(pages_dir)

    empty = next(r for r in summary["results"] if r["file"] == "empty.htm")
    assert summary["failed"] == 1
    assert empty["success"] is False
    assert empty["missing_fields"] == ["title", "description", "item specifics"]


def test_unreadable_page_does_not_stop_batch(tmp_path, monkeypatch):
    pages_dir = _write_pages(tmp_path / "pages")
    real_load = listing_loader.load_saved_page

    def flaky_load(path):
        if path.name == "empty.htm":
            raise OSError("disk error")
        return real_load(path)

    monkeypatch.setattr(listing_loader, "load_saved_page", flaky_load)

    summary = ListingLoader(results_dir=None).process_directory(pages_dir)

    assert summary["successful"] == 1
    assert summary["failed"] == 1
    failed = next(r for r in summary["results"] if not r["success"])
    assert failed["error"] == "OSError: disk error"


def test_main_rejects_missing_directory(tmp_path, monkeypatch):
    monkeypatch.setattr(listing_loader, "LOG_TO_FILE", False)
    assert listing_loader.main([str(tmp_path / "missing")]) == 1
