from __future__ import annotations

import csv
import io
import zipfile
from pathlib import Path

import pytest

from aozorize.parser.tables import MappingTables, build_tables

REGISTRY_COLUMNS = 55


@pytest.fixture(scope="session")
def tables() -> MappingTables:
    return build_tables()


def registry_row(
    book_id: str,
    title: str,
    author_id: str,
    last_name: str,
    first_name: str,
    *,
    text_url: str = "",
    work_copyright: str = "なし",
    person_copyright: str = "なし",
    role: str = "著者",
) -> list[str]:
    row = [""] * REGISTRY_COLUMNS
    row[0] = book_id
    row[1] = title
    row[9] = "新字新仮名"
    row[10] = work_copyright
    row[11] = "1999-01-01"
    row[12] = "2011-05-01"
    row[14] = author_id
    row[15] = last_name
    row[16] = first_name
    row[23] = role
    row[26] = person_copyright
    row[45] = text_url
    return row


def registry_csv(rows: list[list[str]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow([f"col{i}" for i in range(REGISTRY_COLUMNS)])
    writer.writerows(rows)
    return buffer.getvalue()


def write_text_zip(path: Path, text: str, *, member: str = "work.txt", encoding: str = "cp932") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w") as zf:
        zf.writestr(member, text.encode(encoding))
    return path


def write_corpus(root: Path, rows: list[list[str]]) -> Path:
    index = root / "index_pages"
    index.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(index / "list_person_all_extended_utf8.zip", "w") as zf:
        zf.writestr("list_person_all_extended_utf8.csv", registry_csv(rows).encode("utf-8"))
    return root


SAMPLE_RUBY_TXT = """\
吾輩は猫である
夏目漱石

-------------------------------------------------------
【テキスト中に現れる記号について】

《》：ルビ
（例）吾輩《わがはい》

［＃］：入力者注　主に外字の説明や、傍点の位置の指定
-------------------------------------------------------

［＃８字下げ］一［＃「一」は中見出し］

　吾輩《わがはい》は猫である。名前はまだ無い。
　どこで生れたかとんと見当《けんとう》がつかぬ。


底本：「夏目漱石全集1」ちくま文庫、筑摩書房
入力：柴田卓治
"""
