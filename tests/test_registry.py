from __future__ import annotations

from pathlib import Path

import pytest

from aozorize.errors import RegistryError
from aozorize.registry import load_registry, parse_registry_csv, qualifying_works
from conftest import registry_csv, registry_row, write_corpus

URL = "https://www.aozora.gr.jp/cards/000148/files/789_ruby_5639.zip"


def test_load_registry_deduplicates(tmp_path: Path) -> None:
    rows = [
        registry_row("000789", "吾輩は猫である", "000148", "夏目", "漱石", text_url=URL),
        registry_row("000790", "共著", "000148", "夏目", "漱石", text_url=URL),
        registry_row("000790", "共著", "000001", "正岡", "子規", text_url=URL, role="共著者"),
    ]
    registry = load_registry(write_corpus(tmp_path, rows))

    assert [book.id for book in registry.books] == ["000789", "000790"]
    assert [author.name for author in registry.authors] == ["夏目漱石", "正岡子規"]
    assert len(registry.book_authors) == 3
    assert registry.book_authors[2].role == "共著者"
    assert registry.books[0].copyright is False


def test_conflicting_book_records() -> None:
    rows = [
        registry_row("000789", "吾輩は猫である", "000148", "夏目", "漱石"),
        registry_row("000789", "別の題", "000001", "正岡", "子規"),
    ]
    with pytest.raises(RegistryError, match="share id 000789"):
        parse_registry_csv(registry_csv(rows))


def test_duplicate_link() -> None:
    row = registry_row("000789", "吾輩は猫である", "000148", "夏目", "漱石")
    with pytest.raises(RegistryError, match="Duplicate"):
        parse_registry_csv(registry_csv([row, row]))


def test_unknown_copyright_flag() -> None:
    row = registry_row("000789", "吾輩は猫である", "000148", "夏目", "漱石", work_copyright="不明")
    with pytest.raises(RegistryError, match="copyright flag"):
        parse_registry_csv(registry_csv([row]))


def test_short_row() -> None:
    with pytest.raises(RegistryError, match="columns"):
        parse_registry_csv("header\n000789,題\n")


def test_missing_registry(tmp_path: Path) -> None:
    with pytest.raises(RegistryError):
        load_registry(tmp_path)


def test_qualifying_works_filters(tmp_path: Path) -> None:
    rows = [
        registry_row("000001", "公開", "000100", "作者", "一", text_url=URL),
        registry_row("000002", "作品著作権", "000100", "作者", "一", text_url=URL, work_copyright="あり"),
        registry_row("000003", "人物著作権", "000200", "作者", "二", text_url=URL, person_copyright="あり"),
        registry_row("000004", "外部", "000100", "作者", "一", text_url="https://example.com/x_ruby.zip"),
        registry_row("000005", "ルビなし", "000100", "作者", "一", text_url=URL.replace("_ruby_", "_txt_")),
        registry_row("000006", "HTML", "000100", "作者", "一", text_url=URL.replace(".zip", ".html")),
    ]
    registry = parse_registry_csv(registry_csv(rows))
    works = qualifying_works(registry, tmp_path)

    assert [work.book_id for work in works] == ["000001"]
    work = works[0]
    assert work.title == "公開"
    assert work.authors == ["作者一"]
    assert work.author_ids == ["000100"]
    assert work.text_path == tmp_path / "cards/000148/files/789_ruby_5639.zip"
