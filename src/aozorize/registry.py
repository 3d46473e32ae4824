"""Read the corpus work registry (``list_person_all_extended``)."""

from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass, field
from pathlib import Path
from zipfile import BadZipFile, ZipFile

from aozorize.errors import RegistryError

logger = logging.getLogger(__name__)

REGISTRY_ZIP = Path("index_pages") / "list_person_all_extended_utf8.zip"
REGISTRY_CSV = "list_person_all_extended_utf8.csv"
CORPUS_URL_PREFIX = "https://www.aozora.gr.jp/"

# Column positions in list_person_all_extended_utf8.csv.
_COL_BOOK_ID = 0
_COL_TITLE = 1
_COL_TITLE_KANA = 2
_COL_SUBTITLE = 4
_COL_ORIGINAL_TITLE = 6
_COL_WRITING_SYSTEM = 9
_COL_WORK_COPYRIGHT = 10
_COL_PUBLISHED = 11
_COL_UPDATED = 12
_COL_AUTHOR_ID = 14
_COL_LAST_NAME = 15
_COL_FIRST_NAME = 16
_COL_LAST_NAME_KANA = 17
_COL_FIRST_NAME_KANA = 18
_COL_ROLE = 23
_COL_BIRTH = 24
_COL_DEATH = 25
_COL_PERSON_COPYRIGHT = 26
_COL_TEXT_URL = 45
_MIN_COLUMNS = _COL_TEXT_URL + 1


@dataclass(slots=True)
class Author:
    id: str
    last_name: str
    first_name: str
    last_name_kana: str = ""
    first_name_kana: str = ""
    birth_date: str = ""
    death_date: str = ""
    copyright: bool = False

    @property
    def name(self) -> str:
        return f"{self.last_name}{self.first_name}".strip()


@dataclass(slots=True)
class Book:
    id: str
    title: str
    title_kana: str = ""
    subtitle: str = ""
    original_title: str = ""
    writing_system: str = ""
    copyright: bool = False
    published_at: str = ""
    updated_at: str = ""
    text_url: str = ""


@dataclass(slots=True)
class BookAuthor:
    book_id: str
    author_id: str
    role: str = ""


@dataclass(slots=True)
class Registry:
    authors: list[Author] = field(default_factory=list)
    books: list[Book] = field(default_factory=list)
    book_authors: list[BookAuthor] = field(default_factory=list)


@dataclass(slots=True)
class WorkEntry:
    """One candidate work handed to the batch driver."""

    book_id: str
    title: str
    authors: list[str] = field(default_factory=list)
    author_ids: list[str] = field(default_factory=list)
    text_path: Path | None = None
    work_copyright: bool = False
    person_copyright: bool = False


def load_registry(corpus_root: Path) -> Registry:
    """Load the registry table shipped inside the corpus repository."""
    zip_path = Path(corpus_root) / REGISTRY_ZIP
    try:
        with ZipFile(zip_path) as zf:
            raw = zf.read(REGISTRY_CSV)
    except (OSError, BadZipFile, KeyError) as exc:
        raise RegistryError(f"Cannot read registry {zip_path}: {exc}") from exc

    try:
        text = raw.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise RegistryError(f"Registry {zip_path} is not UTF-8") from exc
    return parse_registry_csv(text)


def parse_registry_csv(text: str) -> Registry:
    authors: dict[str, Author] = {}
    books: dict[str, Book] = {}
    links: dict[tuple[str, str], BookAuthor] = {}

    reader = csv.reader(io.StringIO(text))
    next(reader, None)  # header row
    for line_no, record in enumerate(reader, start=2):
        if not record:
            continue
        if len(record) < _MIN_COLUMNS:
            raise RegistryError(f"Registry row {line_no} has {len(record)} columns, expected {_MIN_COLUMNS}")

        author = Author(
            id=record[_COL_AUTHOR_ID],
            last_name=record[_COL_LAST_NAME],
            first_name=record[_COL_FIRST_NAME],
            last_name_kana=record[_COL_LAST_NAME_KANA],
            first_name_kana=record[_COL_FIRST_NAME_KANA],
            birth_date=record[_COL_BIRTH],
            death_date=record[_COL_DEATH],
            copyright=_parse_flag(record[_COL_PERSON_COPYRIGHT], line_no),
        )
        book = Book(
            id=record[_COL_BOOK_ID],
            title=record[_COL_TITLE],
            title_kana=record[_COL_TITLE_KANA],
            subtitle=record[_COL_SUBTITLE],
            original_title=record[_COL_ORIGINAL_TITLE],
            writing_system=record[_COL_WRITING_SYSTEM],
            copyright=_parse_flag(record[_COL_WORK_COPYRIGHT], line_no),
            published_at=record[_COL_PUBLISHED].replace(" ", ""),
            updated_at=record[_COL_UPDATED].replace(" ", ""),
            text_url=record[_COL_TEXT_URL],
        )

        _merge(authors, author.id, author, "author", line_no)
        _merge(books, book.id, book, "book", line_no)

        key = (book.id, author.id)
        if key in links:
            raise RegistryError(f"Duplicate book/author pair at row {line_no}: {key}")
        links[key] = BookAuthor(book_id=book.id, author_id=author.id, role=record[_COL_ROLE])

    logger.info("Loaded registry: %d books, %d authors", len(books), len(authors))
    return Registry(authors=list(authors.values()), books=list(books.values()), book_authors=list(links.values()))


def qualifying_works(registry: Registry, corpus_root: Path) -> list[WorkEntry]:
    """Works that are out of copyright and have a corpus-local ruby-txt zip."""
    authors = {author.id: author for author in registry.authors}
    author_ids_by_book: dict[str, list[str]] = {}
    for link in registry.book_authors:
        author_ids_by_book.setdefault(link.book_id, []).append(link.author_id)

    works: list[WorkEntry] = []
    for book in registry.books:
        author_ids = author_ids_by_book.get(book.id, [])
        person_copyright = any(authors[aid].copyright for aid in author_ids if aid in authors)
        if book.copyright or person_copyright:
            continue

        url = book.text_url
        if not url.startswith(CORPUS_URL_PREFIX) or not url.lower().endswith(".zip") or "ruby" not in url:
            continue

        works.append(
            WorkEntry(
                book_id=book.id,
                title=book.title,
                authors=[authors[aid].name for aid in author_ids if aid in authors],
                author_ids=author_ids,
                text_path=Path(corpus_root) / url[len(CORPUS_URL_PREFIX):],
                work_copyright=book.copyright,
                person_copyright=person_copyright,
            )
        )
    logger.info("%d of %d works qualify", len(works), len(registry.books))
    return works


def _parse_flag(value: str, line_no: int) -> bool:
    if value == "あり":
        return True
    if value == "なし":
        return False
    raise RegistryError(f"Unknown copyright flag {value!r} at row {line_no}")


def _merge(table: dict, key: str, value: object, label: str, line_no: int) -> None:
    existing = table.get(key)
    if existing is not None and existing != value:
        raise RegistryError(f"Different {label} records share id {key} (row {line_no})")
    table[key] = value
